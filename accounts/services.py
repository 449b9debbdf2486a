"""
Identity & session helpers and the profile service.

Views pass the request's Principal in explicitly; nothing here reads
process-wide auth state.
"""
import logging

from django.contrib.auth import authenticate, password_validation
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from common.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from core.policy import Action, Principal, authorize

from .choices import SELF_SERVICE_ROLES, Role
from .models import User

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 60
ADDRESS_MAX_LENGTH = 400


def _clean_profile_fields(name=None, address=None):
    errors = {}
    cleaned = {}
    if name is not None:
        name = name.strip()
        if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
            errors["name"] = [
                f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters."
            ]
        cleaned["name"] = name
    if address is not None:
        address = address.strip()
        if len(address) > ADDRESS_MAX_LENGTH:
            errors["address"] = [f"Address must be at most {ADDRESS_MAX_LENGTH} characters."]
        cleaned["address"] = address
    if errors:
        raise ValidationError(errors)
    return cleaned


def _validate_password(password, user=None, field="password"):
    try:
        password_validation.validate_password(password, user)
    except DjangoValidationError as exc:
        raise ValidationError({field: list(exc.messages)})


# ---------------------------------------------------------------------------
# Identity & session
# ---------------------------------------------------------------------------


def register_user(name, email, password, address="", role=Role.USER):
    """Create an account. Visitors may register as user or store_owner only."""
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError({"role": ["Choose either user or store_owner."]})
    fields = _clean_profile_fields(name=name or "", address=address or "")
    email = User.objects.normalize_email((email or "").strip())
    if not email:
        raise ValidationError({"email": ["Email is required."]})
    if User.objects.filter(email__iexact=email).exists():
        raise ConflictError({"email": ["An account with this email already exists."]})
    _validate_password(password, User(email=email, **fields))
    try:
        with transaction.atomic():
            user = User.objects.create_user(email=email, password=password, role=role, **fields)
    except IntegrityError:
        raise ConflictError({"email": ["An account with this email already exists."]})
    logger.info("User %s registered as %s", user.pk, role)
    return user


def verify_credential(email, password):
    """Principal for a valid email/password pair, else AuthenticationError."""
    user = authenticate(email=(email or "").strip(), password=password)
    if user is None:
        logger.info("Failed login for %s", email)
        raise AuthenticationError("Invalid email or password.")
    return Principal.from_user(user)


def rehash_and_store(user_id, new_password):
    user = get_profile(user_id)
    user.set_password(new_password)
    user.save(update_fields=["password", "updated_at"])


def change_password(actor, user_id, current_password, new_password):
    """Change a user's own password after re-verifying the current one."""
    authorize(actor, Action.CHANGE_PASSWORD, user_id)
    user = get_profile(user_id)
    if not user.check_password(current_password or ""):
        raise ValidationError({"current_password": ["Current password is incorrect."]})
    _validate_password(new_password, user, field="new_password")
    rehash_and_store(user.pk, new_password)
    logger.info("User %s changed their password", user.pk)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


def get_profile(user_id):
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFoundError("User not found.")
    return user


def update_profile(user_id, name=None, address=None):
    """
    Partial update: only the provided fields change.
    email and role are not reachable from here.
    """
    user = get_profile(user_id)
    fields = _clean_profile_fields(name=name, address=address)
    if fields:
        for attr, value in fields.items():
            setattr(user, attr, value)
        user.save(update_fields=[*fields, "updated_at"])
        logger.info("User %s updated profile fields %s", user.pk, sorted(fields))
    return user


def read_profile(actor, user_id):
    authorize(actor, Action.READ_PROFILE, user_id)
    return get_profile(user_id)


def edit_profile(actor, user_id, name=None, address=None):
    authorize(actor, Action.UPDATE_PROFILE, user_id)
    return update_profile(user_id, name=name, address=address)
