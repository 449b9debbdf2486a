"""
Store management: create, update and delete stores and read them with
their rating aggregates attached.

Every mutation takes the acting Principal explicitly and is checked by
core.policy before anything is written.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction

from common.exceptions import ConflictError, NotFoundError, ValidationError
from core.policy import Action, authorize
from ratings.models import Rating

from .filters import StoreFilter
from .models import Store

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("name", "email", "address")


def _clean_fields(name=None, email=None, address=None, *, partial=False):
    """Normalize and validate store fields. Returns only the provided ones."""
    errors = {}
    cleaned = {}

    if name is not None or not partial:
        name = (name or "").strip()
        if not name:
            errors["name"] = ["Store name is required."]
        elif len(name) > 60:
            errors["name"] = ["Store name must be at most 60 characters."]
        cleaned["name"] = name

    if email is not None or not partial:
        email = (email or "").strip().lower()
        if not email:
            errors["email"] = ["Email is required."]
        else:
            try:
                validate_email(email)
            except DjangoValidationError:
                errors["email"] = ["Enter a valid email address."]
        cleaned["email"] = email

    if address is not None:
        address = address.strip()
        if len(address) > 400:
            errors["address"] = ["Address must be at most 400 characters."]
        cleaned["address"] = address

    if errors:
        raise ValidationError(errors)
    return cleaned


def _ensure_email_free(email, exclude_pk=None):
    qs = Store.objects.filter(email__iexact=email)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise ConflictError({"email": ["A store with this email already exists."]})


def get_store(store_id):
    """Store annotated with average_rating / total_ratings, or NotFoundError."""
    store = Store.objects.with_rating_stats().select_related("owner").filter(pk=store_id).first()
    if store is None:
        raise NotFoundError("Store not found.")
    return store


def create_store(actor, name, email, address=""):
    """
    Create a store owned by the acting store owner.
    Raises ValidationError for bad fields, ConflictError for a duplicate email.
    """
    authorize(actor, Action.CREATE_STORE)
    fields = _clean_fields(name=name, email=email, address=address or "")
    try:
        with transaction.atomic():
            _ensure_email_free(fields["email"])
            store = Store.objects.create(owner_id=actor.id, **fields)
    except IntegrityError:
        # Lost a race with a concurrent create on the same email.
        raise ConflictError({"email": ["A store with this email already exists."]})
    logger.info("Store %s created by user %s", store.pk, actor.id)
    return get_store(store.pk)


def update_store(store_id, actor, **patch):
    """
    Apply a partial update of name/email/address. owner is immutable.
    """
    unknown = sorted(set(patch) - set(MUTABLE_FIELDS))
    if unknown:
        raise ValidationError({key: ["This field cannot be changed."] for key in unknown})

    store = get_store(store_id)
    authorize(actor, Action.UPDATE_STORE, store)
    fields = _clean_fields(partial=True, **patch)
    if not fields:
        return store
    try:
        with transaction.atomic():
            if "email" in fields:
                _ensure_email_free(fields["email"], exclude_pk=store.pk)
            for attr, value in fields.items():
                setattr(store, attr, value)
            store.save(update_fields=[*fields, "updated_at"])
    except IntegrityError:
        raise ConflictError({"email": ["A store with this email already exists."]})
    logger.info("Store %s updated by user %s: %s", store.pk, actor.id, sorted(fields))
    return get_store(store.pk)


def delete_store(store_id, actor):
    """
    Delete a store and all of its ratings in one transaction: either both
    are gone afterwards or neither is.
    """
    store = get_store(store_id)
    authorize(actor, Action.DELETE_STORE, store)
    with transaction.atomic():
        removed, _ = Rating.objects.for_store(store).delete()
        store.delete()
    logger.info(
        "Store %s deleted by user %s (%s ratings removed)", store_id, actor.id, removed
    )


def get_stores_for_owner(owner_id):
    """Stores owned by owner_id, with rating aggregates, ordered by name."""
    return Store.objects.for_owner(owner_id).with_rating_stats().order_by("name", "id")


def list_all_stores(filters=None):
    """
    All stores with rating aggregates. filters is a mapping of StoreFilter
    params (name, email, address, owner, min_rating).
    """
    qs = Store.objects.with_rating_stats().select_related("owner").order_by("name", "id")
    if not filters:
        return qs
    filterset = StoreFilter(data=filters, queryset=qs)
    if not filterset.is_valid():
        raise ValidationError(filterset.errors)
    return filterset.qs
