from django.contrib import admin
from django.utils.html import format_html

from .models import Rating


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ["store", "user", "rating", "short_comment", "created_at", "updated_at"]
    list_filter = ["rating", "created_at"]
    search_fields = ["store__name", "user__email", "comment"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["user", "store"]
    date_hierarchy = "created_at"

    def short_comment(self, obj):
        if not obj.comment:
            return "—"
        text = obj.comment[:60] + "…" if len(obj.comment) > 60 else obj.comment
        return format_html('<span title="{}">{}</span>', obj.comment, text)

    short_comment.short_description = "Comment"
