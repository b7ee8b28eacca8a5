from rest_framework import serializers


class StatusSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    position = serializers.SerializerMethodField()
    created_on = serializers.CharField(source="createdOn", read_only=True)
    last_modified_on = serializers.CharField(source="lastModifiedOn", read_only=True)

    def get_position(self, obj):
        # backend order is the only ordering statuses have
        return self.context.get("positions", {}).get(obj.get("id"))


def serialize_statuses(statuses):
    positions = {s.get("id"): index for index, s in enumerate(statuses)}
    return StatusSerializer(statuses, many=True, context={"positions": positions}).data
