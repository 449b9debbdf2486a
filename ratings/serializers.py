from rest_framework import serializers

from .models import MAX_COMMENT_LENGTH, MAX_STARS, MIN_STARS, Rating


class RatingAuthorSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)


class RatingSerializer(serializers.ModelSerializer):
    """Rating as shown in store reviews; author email is not exposed."""

    user = RatingAuthorSerializer(read_only=True)
    store_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Rating
        fields = ["id", "user", "store_id", "rating", "comment", "created_at", "updated_at"]
        read_only_fields = fields


class RatingSubmitSerializer(serializers.Serializer):
    """POST body for create-or-update of the caller's rating."""

    store_id = serializers.IntegerField(min_value=1)
    rating = serializers.IntegerField(min_value=MIN_STARS, max_value=MAX_STARS)
    comment = serializers.CharField(
        max_length=MAX_COMMENT_LENGTH,
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=True,
    )

    def validate_comment(self, value):
        return value or ""
