import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="RepairRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("item_description", models.TextField()),
                ("problem_description", models.TextField()),
                (
                    "repair_type",
                    models.CharField(
                        choices=[
                            ("cleaning", "Cleaning"),
                            ("fixing", "Fixing"),
                            ("resizing", "Resizing"),
                            ("stone_replacement", "Stone Replacement"),
                            ("chain_repair", "Chain Repair"),
                            ("clasp_repair", "Clasp Repair"),
                            ("polishing", "Polishing"),
                            ("plating", "Plating"),
                        ],
                        max_length=32,
                    ),
                ),
                ("estimated_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("actual_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("estimated_completion", models.DateTimeField(blank=True, null=True)),
                ("repair_notes", models.TextField(blank=True, default="")),
                ("customer_approval_required", models.BooleanField(default=False)),
                ("customer_approved", models.BooleanField(blank=True, null=True)),
                ("before_photos", models.JSONField(blank=True, default=list)),
                ("after_photos", models.JSONField(blank=True, default=list)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("received", "Received"),
                            ("assessed", "Assessed"),
                            ("approved", "Approved"),
                            ("in_progress", "In Progress"),
                            ("completed", "Completed"),
                            ("ready_for_pickup", "Ready for Pickup"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="received",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_repairs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="repairs",
                        to="orders.order",
                    ),
                ),
                (
                    "technician",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assigned_repairs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
