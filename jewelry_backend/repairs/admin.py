# repairs/admin.py

from django.contrib import admin

from repairs.models import RepairRequest


@admin.register(RepairRequest)
class RepairRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "repair_type", "status", "technician", "estimated_completion", "created_at")
    list_filter = ("status", "repair_type")
    search_fields = ("order__order_number", "item_description", "order__customer__email")
    readonly_fields = ("order", "status", "created_by", "created_at", "updated_at")
