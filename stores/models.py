"""
Store model. Ratings live in the ratings app; average_rating and
total_ratings are annotations (see core.querysets.StoreQuerySet), never columns.
"""
from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from common.models import TimeStampedModel
from core.querysets import StoreQuerySet


class Store(TimeStampedModel):
    """Rated store - owned by exactly one store_owner user."""

    name = models.CharField(
        max_length=60,
        verbose_name=_("name"),
        help_text=_("Display name of the store."),
    )
    email = models.EmailField(
        unique=True,
        verbose_name=_("email"),
        help_text=_("Contact email; unique among stores."),
    )
    address = models.CharField(
        max_length=400,
        blank=True,
        default="",
        verbose_name=_("address"),
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="stores",
        verbose_name=_("owner"),
        help_text=_("User who owns this store. Not changeable after creation."),
    )

    objects = StoreQuerySet.as_manager()

    class Meta:
        verbose_name = _("store")
        verbose_name_plural = _("stores")
        ordering = ["name", "id"]

    def __str__(self):
        return self.name
