from django.db import models
from django.utils.translation import gettext_lazy as _


class Role(models.TextChoices):
    USER = "user", _("User")
    STORE_OWNER = "store_owner", _("Store owner")
    ADMIN = "admin", _("Administrator")


# Roles a visitor may pick at registration; admins are created by admins.
SELF_SERVICE_ROLES = (Role.USER, Role.STORE_OWNER)
