from rest_framework import serializers

from accounts.models import User
from ratings.services import format_rating


class DashboardStatsSerializer(serializers.Serializer):
    """Admin dashboard counters."""

    total_users = serializers.IntegerField()
    store_owners = serializers.IntegerField()
    total_stores = serializers.IntegerField()
    total_ratings = serializers.IntegerField()
    average_rating = serializers.FloatField(allow_null=True)
    rating_display = serializers.SerializerMethodField()

    def get_rating_display(self, obj):
        return format_rating(obj["average_rating"])


class AdminUserSerializer(serializers.ModelSerializer):
    """User row for the admin list; store_count is annotated by list_users()."""

    store_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "address", "role", "store_count", "created_at"]
        read_only_fields = fields
