# history/admin.py

from django.contrib import admin

from history.models import StatusHistoryEntry


@admin.register(StatusHistoryEntry)
class StatusHistoryEntryAdmin(admin.ModelAdmin):
    list_display = ("entity_type", "entity_id", "status", "changed_by", "changed_at")
    list_filter = ("entity_type", "status", "changed_at")
    search_fields = ("entity_id", "notes", "changed_by__email")
    readonly_fields = (
        "entity_type",
        "entity_id",
        "status",
        "notes",
        "changed_by",
        "changed_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
