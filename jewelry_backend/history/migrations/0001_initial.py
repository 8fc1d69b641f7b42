import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StatusHistoryEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "entity_type",
                    models.CharField(
                        choices=[("order", "Order"), ("repair", "Repair"), ("return", "Return")],
                        max_length=10,
                    ),
                ),
                ("entity_id", models.PositiveBigIntegerField()),
                ("status", models.CharField(max_length=32)),
                ("notes", models.TextField(blank=True, default="")),
                ("changed_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="status_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "status history",
                "ordering": ["changed_at", "id"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id"], name="history_entity_idx"),
                ],
            },
        ),
    ]
