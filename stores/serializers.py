"""Serializers for stores. Rating aggregates come from queryset annotations."""
from rest_framework import serializers

from ratings.services import format_rating

from .models import Store


class StoreOwnerSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)


class StoreSerializer(serializers.ModelSerializer):
    """
    Store with average_rating (full precision, null when unrated),
    total_ratings and a one-decimal rating_display.
    """

    # 20-60 chars is the form contract for store names.
    name = serializers.CharField(min_length=20, max_length=60)
    # Declared explicitly so duplicate emails reach the service (409), not a 400 validator.
    email = serializers.EmailField(max_length=254)
    address = serializers.CharField(max_length=400, required=False, allow_blank=True)
    owner = StoreOwnerSerializer(read_only=True)
    average_rating = serializers.FloatField(read_only=True, allow_null=True)
    total_ratings = serializers.IntegerField(read_only=True)
    rating_display = serializers.SerializerMethodField()

    class Meta:
        model = Store
        fields = [
            "id",
            "name",
            "email",
            "address",
            "owner",
            "average_rating",
            "total_ratings",
            "rating_display",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "owner", "created_at", "updated_at"]

    def get_rating_display(self, obj):
        return format_rating(getattr(obj, "average_rating", None))
