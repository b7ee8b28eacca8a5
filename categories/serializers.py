import re

from rest_framework import serializers

DEFAULT_ICON = "fas fa-tag"
DEFAULT_COLOR = "#3B82F6"
HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class CategorySerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    icon = serializers.SerializerMethodField()
    color = serializers.SerializerMethodField()
    created_on = serializers.CharField(source="createdOn", read_only=True)
    last_modified_on = serializers.CharField(source="lastModifiedOn", read_only=True)

    def get_icon(self, obj):
        return obj.get("icon") or DEFAULT_ICON

    def get_color(self, obj):
        return obj.get("color") or DEFAULT_COLOR


class CategoryInputSerializer(serializers.Serializer):
    name = serializers.CharField(
        error_messages={
            "required": "Category name is required",
            "blank": "Category name is required",
        },
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")
    icon = serializers.CharField(required=False, default=DEFAULT_ICON)
    color = serializers.CharField(required=False, default=DEFAULT_COLOR)

    def validate_name(self, value):
        if len(value) < 2:
            raise serializers.ValidationError("Category name must be at least 2 characters long")
        if len(value) > 50:
            raise serializers.ValidationError("Category name cannot exceed 50 characters")
        return value

    def validate_description(self, value):
        if len(value) > 200:
            raise serializers.ValidationError("Category description cannot exceed 200 characters")
        return value

    def validate_color(self, value):
        if not HEX_COLOR.match(value):
            raise serializers.ValidationError("Color must be a hex value like #3B82F6")
        return value.upper()

    def to_backend(self):
        data = self.validated_data
        return {
            "name": data["name"],
            "description": data["description"],
            "icon": data["icon"],
            "color": data["color"],
        }
