"""
Rating aggregate and rating service.

The Rating rows are the only source of truth for a store's statistics:
get_average_and_count() runs a fresh aggregate query on every call, so a
read right after upsert_rating()/delete_rating() always sees the write.

Two layers:
- upsert_rating / delete_rating: storage-level operations keyed by ids
- submit_rating / remove_rating: the same, gated by core.policy for an actor
"""
import logging

from django.db import IntegrityError, transaction

from common.exceptions import ConflictError, NotFoundError, ValidationError
from core.policy import Action, authorize
from stores.models import Store

from .models import MAX_COMMENT_LENGTH, MAX_STARS, MIN_STARS, Rating

logger = logging.getLogger(__name__)


def format_rating(average):
    """Human-readable average for cards: one decimal, or N/A when unrated."""
    if average is None:
        return "N/A"
    return f"{average:.1f}"


def _validate(value, comment):
    errors = {}
    if isinstance(value, bool) or not isinstance(value, int):
        errors["rating"] = ["Rating must be a whole number."]
    elif not MIN_STARS <= value <= MAX_STARS:
        errors["rating"] = [f"Rating must be between {MIN_STARS} and {MAX_STARS}."]
    if comment is None:
        comment = ""
    if not isinstance(comment, str):
        errors["comment"] = ["Comment must be text."]
    elif len(comment) > MAX_COMMENT_LENGTH:
        errors["comment"] = [f"Comment must be at most {MAX_COMMENT_LENGTH} characters."]
    if errors:
        raise ValidationError(errors)
    return comment


def upsert_rating(user_id, store_id, value, comment=""):
    """
    Create the (user, store) rating or update it in place.
    Returns (rating, created). created_at is kept on update; updated_at moves.
    """
    comment = _validate(value, comment)
    if not Store.objects.filter(pk=store_id).exists():
        raise NotFoundError("Store not found.")

    defaults = {"rating": value, "comment": comment}
    # update_or_create locks the existing row; the unique constraint catches
    # a concurrent first insert, in which case the second pass updates it.
    for attempt in range(2):
        try:
            with transaction.atomic():
                rating, created = Rating.objects.update_or_create(
                    user_id=user_id, store_id=store_id, defaults=defaults
                )
            break
        except IntegrityError:
            if attempt:
                logger.warning(
                    "Rating upsert for user %s store %s failed twice", user_id, store_id
                )
                raise ConflictError("Your rating could not be saved, please retry.")

    logger.info(
        "Rating %s %s: user=%s store=%s stars=%s",
        rating.pk,
        "created" if created else "updated",
        user_id,
        store_id,
        value,
    )
    return rating, created


def delete_rating(rating_id):
    """Remove a rating. NotFoundError if it does not exist."""
    deleted, _ = Rating.objects.filter(pk=rating_id).delete()
    if not deleted:
        raise NotFoundError("Rating not found.")
    logger.info("Rating %s deleted", rating_id)


def get_rating(rating_id):
    rating = Rating.objects.filter(pk=rating_id).first()
    if rating is None:
        raise NotFoundError("Rating not found.")
    return rating


def get_average_and_count(store_id):
    """(average, count) for a store; average is full precision, None iff count == 0."""
    return Rating.objects.for_store(store_id).summary()


def get_ratings_for_store(store_id):
    """Ratings of a store, newest first (ties broken by id, newest first)."""
    return Rating.objects.for_store(store_id).select_related("user").newest_first()


def get_user_rating_for_store(user_id, store_id):
    """The user's rating for the store, or None."""
    return Rating.objects.for_store(store_id).for_user(user_id).first()


def submit_rating(actor, store_id, value, comment=""):
    """Rate a store as actor. Any authenticated role may rate any store."""
    authorize(actor, Action.RATE_STORE, actor.id if actor else None)
    return upsert_rating(actor.id, store_id, value, comment)


def remove_rating(actor, rating_id):
    """Delete a rating as actor: its author or an admin."""
    rating = get_rating(rating_id)
    authorize(actor, Action.DELETE_RATING, rating)
    delete_rating(rating.pk)
