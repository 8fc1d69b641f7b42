# notifications/management/commands/seed_notification_templates.py

from django.core.management.base import BaseCommand
from django.db import transaction

from notifications.models import NotificationTemplate
from notifications.services.templates import DEFAULT_TEMPLATES


class Command(BaseCommand):
    help = "Load the built-in notification templates into the template store."

    def add_arguments(self, parser):
        parser.add_argument(
            "--overwrite",
            action="store_true",
            help="Replace subject/body of templates that already exist.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        overwrite = options["overwrite"]
        created = updated = 0

        for (notification_type, channel), (subject, body) in sorted(DEFAULT_TEMPLATES.items()):
            row, was_created = NotificationTemplate.objects.get_or_create(
                notification_type=notification_type,
                channel=channel,
                defaults={"subject": subject, "template": body, "is_active": True},
            )
            if was_created:
                created += 1
            elif overwrite:
                row.subject = subject
                row.template = body
                row.save(update_fields=["subject", "template", "updated_at"])
                updated += 1

        self.stdout.write(
            self.style.SUCCESS(f"Templates: {created} created, {updated} updated.")
        )
