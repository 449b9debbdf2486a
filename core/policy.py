"""
Authorization policy: the single place that decides who may do what.

decide(principal, action, target) is pure and deterministic. It is evaluated
on every call; nothing is cached across requests because role and ownership
can change between them.

Targets by action:
- READ_PROFILE / UPDATE_PROFILE / CHANGE_PASSWORD: user id or User
- UPDATE_STORE / DELETE_STORE: Store (owner_id)
- RATE_STORE: user id the rating is written for, or a Rating
- DELETE_RATING: Rating (user_id)
- CREATE_STORE, LIST_USERS, DELETE_USER, VIEW_STATS: ignored
"""
import enum
from dataclasses import dataclass

from accounts.choices import Role
from common.exceptions import AuthenticationError, AuthorizationError


@dataclass(frozen=True)
class Principal:
    """Authenticated actor of one request."""

    id: int
    role: Role

    @classmethod
    def from_user(cls, user):
        """Principal for an authenticated user, None for anonymous/inactive."""
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        if not user.is_active:
            return None
        return cls(id=user.pk, role=Role(user.role))


class Action(enum.Enum):
    READ_PROFILE = "read_profile"
    UPDATE_PROFILE = "update_profile"
    CHANGE_PASSWORD = "change_password"
    CREATE_STORE = "create_store"
    UPDATE_STORE = "update_store"
    DELETE_STORE = "delete_store"
    RATE_STORE = "rate_store"
    DELETE_RATING = "delete_rating"
    LIST_USERS = "list_users"
    DELETE_USER = "delete_user"
    VIEW_STATS = "view_stats"


def _user_id_of(target):
    """Owning user id of a target: Rating.user_id, User.pk, or a raw id."""
    if target is None:
        return None
    if hasattr(target, "user_id"):
        return target.user_id
    return getattr(target, "pk", target)


def _is_self(principal, target):
    return principal.id == _user_id_of(target)


def _is_admin(principal, target):
    return principal.role == Role.ADMIN


def _is_store_owner(principal, target):
    return principal.role == Role.STORE_OWNER


def _can_manage_store(principal, target):
    if principal.role == Role.ADMIN:
        return True
    return (
        principal.role == Role.STORE_OWNER
        and target is not None
        and principal.id == target.owner_id
    )


def _can_rate(principal, target):
    return principal.role in Role.values and _is_self(principal, target)


def _can_delete_rating(principal, target):
    return principal.role == Role.ADMIN or _is_self(principal, target)


_RULES = {
    Action.READ_PROFILE: _is_self,
    Action.UPDATE_PROFILE: _is_self,
    # Current-password re-verification happens in accounts.services.change_password.
    Action.CHANGE_PASSWORD: _is_self,
    Action.CREATE_STORE: _is_store_owner,
    Action.UPDATE_STORE: _can_manage_store,
    Action.DELETE_STORE: _can_manage_store,
    Action.RATE_STORE: _can_rate,
    Action.DELETE_RATING: _can_delete_rating,
    Action.LIST_USERS: _is_admin,
    Action.DELETE_USER: _is_admin,
    Action.VIEW_STATS: _is_admin,
}


def decide(principal, action, target=None):
    """Return True if principal may perform action on target."""
    if principal is None:
        return False
    return bool(_RULES[action](principal, target))


def authorize(principal, action, target=None):
    """Raise AuthenticationError / AuthorizationError unless decide() allows."""
    if principal is None:
        raise AuthenticationError()
    if not decide(principal, action, target):
        raise AuthorizationError()
