"""Serializers for authentication flows and user administration."""

from typing import cast

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

from access_control.roles import Role, normalize_role
from .managers import UserManager

User = get_user_model()


class LoginSerializer(serializers.Serializer):
    """Authenticate a user via email/password using bcrypt verification."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Authenticate credentials and attach the user to validated_data."""
        email = attrs.get("email")
        password = attrs.get("password")
        try:
            user = User.objects.get(email=email)
        except User.DoesNotExist:
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_account_active:
            raise AuthenticationFailed("User is inactive")

        if not UserManager.verify_password(user, password):
            raise AuthenticationFailed("Invalid credentials")

        attrs["user"] = user
        return attrs


class RefreshSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class UserDetailSerializer(serializers.ModelSerializer):
    """Read-only user profile payload for responses."""

    class Meta:
        """Expose identity, role, and assignment attributes."""
        model = User
        fields = [
            "id",
            "email",
            "full_name",
            "role",
            "supervisor",
            "status",
            "is_active",
            "skills",
        ]
        read_only_fields = fields


class RoleField(serializers.ChoiceField):
    """Role choice accepting any letter case."""

    def __init__(self, **kwargs):
        super().__init__(choices=Role.choices, **kwargs)

    def to_internal_value(self, data):
        return super().to_internal_value(normalize_role(data) or "")


class UserCreateSerializer(serializers.ModelSerializer):
    """Create a user with a role chosen by an administrator."""

    password = serializers.CharField(write_only=True, min_length=8)
    role = RoleField(required=False)

    class Meta:
        """Profile fields settable at creation time."""
        model = User
        fields = ["email", "password", "full_name", "role", "supervisor", "skills"]

    @staticmethod
    def validate_email(value):
        """Ensure email is unique before creation."""
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already in use")
        return value

    def create(self, validated_data):
        manager = cast(UserManager, User.objects)
        return manager.create_user(**validated_data)


class UserUpdateSerializer(serializers.ModelSerializer):
    """Partial profile/role updates from the users configuration tab."""

    role = RoleField(required=False)

    class Meta:
        """Email and password are not editable here."""
        model = User
        fields = ["full_name", "role", "supervisor", "status", "is_active", "skills"]
        extra_kwargs = {field: {"required": False} for field in fields}

    def validate(self, attrs):
        if "email" in getattr(self, "initial_data", {}):
            raise serializers.ValidationError("Email cannot be updated via this endpoint")
        return super().validate(attrs)


class AvailabilitySerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class SkillsSerializer(serializers.Serializer):
    """Replace a user's skills with a list of existing product ids."""

    skills = serializers.ListField(child=serializers.CharField(), allow_empty=True)

    @staticmethod
    def validate_skills(value):
        from sales.models import Product

        unique = list(dict.fromkeys(value))
        numeric = [skill for skill in unique if skill.isdigit()]
        known = {str(pk) for pk in Product.objects.filter(pk__in=numeric).values_list("pk", flat=True)}
        missing = [skill for skill in unique if skill not in known]
        if missing:
            raise serializers.ValidationError(f"Unknown product ids: {', '.join(missing)}")
        return unique


__all__ = [
    "LoginSerializer",
    "RefreshSerializer",
    "UserDetailSerializer",
    "UserCreateSerializer",
    "UserUpdateSerializer",
    "AvailabilitySerializer",
    "SkillsSerializer",
]
