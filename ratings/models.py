from django.conf import settings
from django.core.validators import MaxLengthValidator, MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from common.models import TimeStampedModel
from core.querysets import RatingQuerySet

MIN_STARS = 1
MAX_STARS = 5
MAX_COMMENT_LENGTH = 500


class Rating(TimeStampedModel):
    """A user's 1-5 star rating of a store - one per (user, store)."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="ratings",
        verbose_name=_("user"),
    )
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="ratings",
        verbose_name=_("store"),
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_STARS), MaxValueValidator(MAX_STARS)],
        verbose_name=_("rating"),
        help_text=_("Rating 1-5."),
    )
    comment = models.TextField(
        blank=True,
        default="",
        validators=[MaxLengthValidator(MAX_COMMENT_LENGTH)],
        verbose_name=_("comment"),
    )

    objects = RatingQuerySet.as_manager()

    class Meta:
        verbose_name = _("rating")
        verbose_name_plural = _("ratings")
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "store"],
                name="unique_user_store_rating",
            ),
            models.CheckConstraint(
                condition=models.Q(rating__gte=MIN_STARS) & models.Q(rating__lte=MAX_STARS),
                name="rating_between_1_and_5",
            ),
        ]

    def __str__(self):
        return f"{self.user} rated {self.store} {self.rating} stars"
