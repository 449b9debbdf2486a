"""
Reusable querysets filtered by store and ownership.

Rating statistics are never stored on Store; they are annotated here from
the current Rating rows on every query.
"""
from django.db import models
from django.db.models import Avg, Count


class StoreQuerySet(models.QuerySet):
    """Queryset for Store - ownership scoping and rating aggregates."""

    def with_rating_stats(self):
        """Annotate average_rating (float or None) and total_ratings (int)."""
        return self.annotate(
            average_rating=Avg('ratings__rating'),
            total_ratings=Count('ratings', distinct=True),
        )

    def for_owner(self, owner):
        """Filter to stores owned by the given user (pk or instance)."""
        owner_pk = getattr(owner, 'pk', owner)
        return self.filter(owner_id=owner_pk)

    def rated(self):
        """Stores with at least one rating. Requires with_rating_stats()."""
        return self.filter(total_ratings__gt=0)


class RatingQuerySet(models.QuerySet):
    """Queryset for Rating - filter by store or author."""

    def for_store(self, store):
        """Filter to ratings of the given store (pk or instance)."""
        store_pk = getattr(store, 'pk', store)
        return self.filter(store_id=store_pk)

    def for_user(self, user):
        """Filter to ratings written by the given user (pk or instance)."""
        user_pk = getattr(user, 'pk', user)
        return self.filter(user_id=user_pk)

    def newest_first(self):
        """Display order: most recent review first, id breaks ties."""
        return self.order_by('-created_at', '-id')

    def summary(self):
        """(average, count) over this queryset; average is None when empty."""
        agg = self.aggregate(average=Avg('rating'), count=Count('id'))
        average = agg['average']
        return (float(average) if average is not None else None, agg['count'] or 0)
