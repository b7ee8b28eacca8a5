import re

from rest_framework import serializers

from .roles import Role

NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")


class UserSerializer(serializers.Serializer):
    """Backend user payload -> API output. Role is normalized here."""
    id = serializers.CharField(read_only=True)
    full_name = serializers.CharField(source="fullName", read_only=True)
    email = serializers.CharField(read_only=True)
    role = serializers.SerializerMethodField()
    is_admin = serializers.SerializerMethodField()
    created_on = serializers.CharField(source="createdOn", read_only=True)
    last_modified_on = serializers.CharField(source="lastModifiedOn", read_only=True)

    def get_role(self, obj):
        return Role.parse(obj.get("role")).label

    def get_is_admin(self, obj):
        return Role.parse(obj.get("role")) is Role.ADMIN


def _email_field():
    return serializers.EmailField(
        max_length=254,
        error_messages={
            "required": "Email is required",
            "blank": "Email is required",
            "invalid": "Please enter a valid email address",
            "max_length": "Email cannot exceed 254 characters",
        },
    )


def _full_name_field():
    return serializers.CharField(
        error_messages={
            "required": "Full name is required",
            "blank": "Full name is required",
        },
    )


def _check_full_name(value, letters_only=False):
    if len(value) < 2:
        raise serializers.ValidationError("Full name must be at least 2 characters long")
    if len(value) > 100:
        raise serializers.ValidationError("Full name cannot exceed 100 characters")
    if letters_only and not NAME_PATTERN.match(value):
        raise serializers.ValidationError(
            "Full name can only contain letters, spaces, hyphens, and apostrophes"
        )
    return value


class LoginSerializer(serializers.Serializer):
    email = _email_field()
    password = serializers.CharField(
        trim_whitespace=False,
        error_messages={"required": "Password is required", "blank": "Password is required"},
    )


class RegisterSerializer(serializers.Serializer):
    full_name = _full_name_field()
    email = _email_field()
    password = serializers.CharField(
        trim_whitespace=False,
        error_messages={"required": "Password is required", "blank": "Password is required"},
    )
    confirm_password = serializers.CharField(
        trim_whitespace=False,
        error_messages={
            "required": "Password confirmation is required",
            "blank": "Password confirmation is required",
        },
    )

    def validate_full_name(self, value):
        return _check_full_name(value, letters_only=True)

    def validate_password(self, value):
        errors = []
        if len(value) < 6:
            errors.append("Password must be at least 6 characters long")
        if len(value) > 100:
            errors.append("Password cannot exceed 100 characters")
        if errors:
            raise serializers.ValidationError(errors)
        return value

    def validate(self, attrs):
        if attrs["password"] != attrs["confirm_password"]:
            raise serializers.ValidationError({"confirm_password": "Passwords do not match"})
        return attrs


class NewUserSerializer(RegisterSerializer):
    """Account created by an admin; no confirmation field."""
    confirm_password = None

    def validate(self, attrs):
        return attrs


class UserUpdateSerializer(serializers.Serializer):
    full_name = _full_name_field()
    email = _email_field()

    def validate_full_name(self, value):
        return _check_full_name(value)
