import re
from decimal import Decimal, InvalidOperation

from rest_framework import serializers

from . import directions, workflow
from .services import image_errors

GUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)


class ComplaintSerializer(serializers.Serializer):
    """
    Backend complaint -> API output.

    Category and status are always a name (or "Unknown"). The derived fields
    (days_pending, is_overdue, quick_action, links) are computed against
    context["now"] and are never sent back to the backend.
    """
    id = serializers.CharField(read_only=True)
    title = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    category_name = serializers.SerializerMethodField()
    status_name = serializers.SerializerMethodField()
    user_name = serializers.SerializerMethodField()
    user_email = serializers.CharField(source="userEmail", read_only=True)
    latitude = serializers.CharField(read_only=True)
    longitude = serializers.CharField(read_only=True)
    media_url = serializers.CharField(source="mediaUrl", read_only=True)
    created_on = serializers.CharField(source="createdOn", read_only=True)
    last_modified_on = serializers.CharField(source="lastModifiedOn", read_only=True)
    days_pending = serializers.SerializerMethodField()
    is_overdue = serializers.SerializerMethodField()
    age_label = serializers.SerializerMethodField()
    quick_action = serializers.SerializerMethodField()
    links = serializers.SerializerMethodField()

    def get_category_name(self, obj):
        return obj.get("categoryName") or workflow.UNKNOWN

    def get_status_name(self, obj):
        return obj.get("statusName") or workflow.UNKNOWN

    def get_user_name(self, obj):
        return obj.get("userName") or "User Info N/A"

    def get_days_pending(self, obj):
        return workflow.days_pending(obj.get("createdOn"), self.context.get("now"))

    def get_is_overdue(self, obj):
        return workflow.is_overdue(obj.get("createdOn"), self.context.get("now"))

    def get_age_label(self, obj):
        return workflow.age_label(self.get_days_pending(obj))

    def get_quick_action(self, obj):
        return workflow.StatusWorkflow().quick_action(obj.get("statusName"))

    def get_links(self, obj):
        lat, lng = obj.get("latitude"), obj.get("longitude")
        if not lat or not lng:
            return None
        return {
            "view": directions.view_url(lat, lng),
            "directions": directions.directions_url(lat, lng, self.context.get("user_agent")),
        }


def _coordinate(value, limit, label):
    if value in (None, ""):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise serializers.ValidationError(f"{label} must be a decimal number")
    if not -limit <= number <= limit:
        raise serializers.ValidationError(f"{label} must be between -{limit} and {limit}")
    return str(value).strip()


class ComplaintSubmitSerializer(serializers.Serializer):
    title = serializers.CharField(
        error_messages={"required": "Title is required", "blank": "Title is required"},
    )
    description = serializers.CharField(
        error_messages={"required": "Description is required", "blank": "Description is required"},
    )
    category_id = serializers.CharField(
        error_messages={"required": "Category is required", "blank": "Category is required"},
    )
    latitude = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    longitude = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    image = serializers.FileField(required=False, allow_null=True, allow_empty_file=True)

    def validate_title(self, value):
        if len(value) < 5:
            raise serializers.ValidationError("Title must be at least 5 characters long")
        if len(value) > 200:
            raise serializers.ValidationError("Title cannot exceed 200 characters")
        return value

    def validate_description(self, value):
        if len(value) < 10:
            raise serializers.ValidationError("Description must be at least 10 characters long")
        if len(value) > 2000:
            raise serializers.ValidationError("Description cannot exceed 2000 characters")
        return value

    def validate_category_id(self, value):
        if not GUID.match(value):
            raise serializers.ValidationError("Invalid category selected")
        return value

    def validate_latitude(self, value):
        return _coordinate(value, 90, "Latitude")

    def validate_longitude(self, value):
        return _coordinate(value, 180, "Longitude")

    def validate_image(self, value):
        if value is None:
            return None
        errors = image_errors(value)
        if errors:
            raise serializers.ValidationError(errors)
        return value


class StatusChangeSerializer(serializers.Serializer):
    status_id = serializers.CharField(
        error_messages={"required": "Status is required", "blank": "Status is required"},
    )


class BulkStartSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.CharField(), allow_empty=False)
