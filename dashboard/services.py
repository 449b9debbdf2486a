"""
Admin dashboard: aggregate statistics and user management.

Statistics are a read-only snapshot computed from the current rows; the
average rating is the mean of per-store averages over rated stores only.
"""
import logging

from django.db import transaction
from django.db.models import Count, Q

from accounts.choices import Role
from accounts.models import User
from common.exceptions import NotFoundError, ValidationError
from core.policy import Action, authorize
from ratings.models import Rating
from stores.models import Store

logger = logging.getLogger(__name__)


def get_dashboard_stats():
    store_averages = list(
        Store.objects.with_rating_stats().rated().values_list("average_rating", flat=True)
    )
    average = sum(store_averages) / len(store_averages) if store_averages else None
    return {
        "total_users": User.objects.count(),
        "store_owners": User.objects.filter(role=Role.STORE_OWNER).count(),
        "total_stores": Store.objects.count(),
        "total_ratings": Rating.objects.count(),
        "average_rating": average,
    }


def list_users(actor, role=None):
    authorize(actor, Action.LIST_USERS)
    qs = User.objects.annotate(store_count=Count("stores")).order_by("name", "id")
    if role:
        if role not in Role.values:
            raise ValidationError({"role": [f"Unknown role '{role}'."]})
        qs = qs.filter(role=role)
    return qs


def delete_user(actor, user_id):
    """
    Delete a user. Their stores and every rating of those stores go with
    them, as do the ratings they wrote; all in one transaction.
    """
    # Checked before the lookup so non-admins cannot probe which ids exist.
    authorize(actor, Action.DELETE_USER)
    if actor.id == int(user_id):
        raise ValidationError({"detail": ["You cannot delete your own account."]})
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFoundError("User not found.")
    with transaction.atomic():
        ratings_removed, _ = Rating.objects.filter(
            Q(user_id=user.pk) | Q(store__owner_id=user.pk)
        ).delete()
        stores_removed, _ = Store.objects.for_owner(user).delete()
        user.delete()
    logger.info(
        "User %s deleted by admin %s (%s stores, %s ratings removed)",
        user_id,
        actor.id,
        stores_removed,
        ratings_removed,
    )
