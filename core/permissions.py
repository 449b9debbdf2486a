"""
DRF permission classes. Each one is a thin adapter over core.policy.decide,
so the rules themselves live in one table.

- HasPolicyAction: view-level gate, view.policy_actions maps method -> Action
- CanManageStore: store owner or admin may write; anyone may read
- CanDeleteRating: rating author or admin
"""
from rest_framework import permissions

from .policy import Action, Principal, decide


def principal_for(request):
    """Explicit request context handed to the service layer."""
    return Principal.from_user(getattr(request, "user", None))


class HasPolicyAction(permissions.BasePermission):
    """
    Gate on a target-less action chosen by HTTP method.
    Methods missing from view.policy_actions are not gated here.
    """

    def has_permission(self, request, view):
        action = getattr(view, "policy_actions", {}).get(request.method)
        if action is None:
            return True
        return decide(principal_for(request), action)


class CanManageStore(permissions.BasePermission):
    """Read for everyone; update/delete for the store's owner or an admin."""

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        action = Action.DELETE_STORE if request.method == "DELETE" else Action.UPDATE_STORE
        return decide(principal_for(request), action, obj)


class CanDeleteRating(permissions.BasePermission):
    """Only the rating's author or an admin may delete it."""

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return decide(principal_for(request), Action.DELETE_RATING, obj)
