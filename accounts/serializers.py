from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.settings import api_settings

from . import services
from .choices import SELF_SERVICE_ROLES, Role
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """User profile; never includes the password."""

    class Meta:
        model = User
        fields = ["id", "name", "email", "address", "role", "created_at", "updated_at"]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.Serializer):
    """PUT/PATCH profile body. Only name and address are editable."""

    name = serializers.CharField(
        min_length=services.NAME_MIN_LENGTH,
        max_length=services.NAME_MAX_LENGTH,
        required=False,
    )
    address = serializers.CharField(
        max_length=services.ADDRESS_MAX_LENGTH,
        required=False,
        allow_blank=True,
    )


class RegisterSerializer(serializers.Serializer):
    """Serializer for user registration."""

    name = serializers.CharField(
        min_length=services.NAME_MIN_LENGTH, max_length=services.NAME_MAX_LENGTH
    )
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    address = serializers.CharField(
        max_length=services.ADDRESS_MAX_LENGTH, required=False, allow_blank=True, default=""
    )
    role = serializers.ChoiceField(
        choices=[(role.value, role.label) for role in SELF_SERVICE_ROLES],
        default=Role.USER,
    )


class LoginSerializer(TokenObtainPairSerializer):
    """Email/password login returning a JWT pair plus the user."""

    def validate(self, attrs):
        principal = services.verify_credential(
            attrs.get(self.username_field, ""), attrs.get("password")
        )
        self.user = User.objects.get(pk=principal.id)

        refresh = self.get_token(self.user)
        data = {
            "refresh": str(refresh),
            "access": str(refresh.access_token),
            "user": UserSerializer(self.user).data,
        }

        if api_settings.UPDATE_LAST_LOGIN:
            from django.contrib.auth.models import update_last_login

            update_last_login(None, self.user)

        return data


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()
