"""
Password rules for the frontend contract, plugged into AUTH_PASSWORD_VALIDATORS.
"""
import re

from django.core.exceptions import ValidationError
from django.utils.translation import gettext as _

SPECIAL_CHARACTERS = "!@#$%^&*"


class PasswordComplexityValidator:
    """8-16 characters with at least one uppercase letter and one of !@#$%^&*."""

    def __init__(self, min_length=8, max_length=16):
        self.min_length = min_length
        self.max_length = max_length

    def validate(self, password, user=None):
        errors = []
        if not self.min_length <= len(password) <= self.max_length:
            errors.append(
                ValidationError(
                    _("Password must be between %(min)d and %(max)d characters."),
                    code="password_length",
                    params={"min": self.min_length, "max": self.max_length},
                )
            )
        if not re.search(r"[A-Z]", password):
            errors.append(
                ValidationError(
                    _("Password must contain at least one uppercase letter."),
                    code="password_no_upper",
                )
            )
        if not any(ch in SPECIAL_CHARACTERS for ch in password):
            errors.append(
                ValidationError(
                    _("Password must contain at least one special character (%(chars)s)."),
                    code="password_no_special",
                    params={"chars": SPECIAL_CHARACTERS},
                )
            )
        if errors:
            raise ValidationError(errors)

    def get_help_text(self):
        return _(
            "Your password must be %(min)d-%(max)d characters with an uppercase letter "
            "and one of %(chars)s."
        ) % {"min": self.min_length, "max": self.max_length, "chars": SPECIAL_CHARACTERS}
