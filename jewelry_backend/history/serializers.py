# history/serializers.py

from rest_framework import serializers

from history.models import StatusHistoryEntry


class StatusHistoryEntrySerializer(serializers.ModelSerializer):
    """Read-only view of one transition."""

    changed_by_email = serializers.EmailField(source="changed_by.email", read_only=True, default=None)

    class Meta:
        model = StatusHistoryEntry
        fields = [
            "id",
            "entity_type",
            "entity_id",
            "status",
            "notes",
            "changed_by",
            "changed_by_email",
            "changed_at",
        ]
        read_only_fields = fields
