"""
Store admin with an inline for the store's ratings.
Rating statistics are annotated on the changelist queryset, never stored.
"""
from django.contrib import admin

from ratings.models import Rating

from .models import Store


class RatingInline(admin.TabularInline):
    model = Rating
    extra = 0
    fields = ["user", "rating", "comment", "created_at"]
    readonly_fields = ["created_at"]
    raw_id_fields = ["user"]
    show_change_link = True
    verbose_name_plural = "Ratings"


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "owner", "average_rating", "total_ratings", "created_at"]
    search_fields = ["name", "email", "owner__email"]
    raw_id_fields = ["owner"]
    inlines = [RatingInline]

    def get_queryset(self, request):
        return super().get_queryset(request).with_rating_stats()

    @admin.display(description="Average", ordering="average_rating")
    def average_rating(self, obj):
        return f"{obj.average_rating:.1f}" if obj.average_rating is not None else "—"

    @admin.display(description="Ratings", ordering="total_ratings")
    def total_ratings(self, obj):
        return obj.total_ratings
