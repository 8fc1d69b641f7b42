# notifications/tests/test_dispatcher.py

from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from core.exceptions import DependencyError
from integrations.local import LocalChannelGateway
from notifications.models import Notification, NotificationTemplate
from notifications.services.dispatcher import NotificationDispatcher
from notifications.services.templates import DEFAULT_TEMPLATES, render, resolve_template

User = get_user_model()


class FlakyGateway(LocalChannelGateway):
    """Fails one channel, records the rest."""

    def __init__(self, broken_channel):
        super().__init__()
        self.broken_channel = broken_channel

    def deliver(self, *, customer_id, channel, subject, message, notification_id=None):
        if channel == self.broken_channel:
            raise DependencyError(f"{channel} provider down")
        return super().deliver(
            customer_id=customer_id,
            channel=channel,
            subject=subject,
            message=message,
            notification_id=notification_id,
        )


class RecordCheckingGateway(LocalChannelGateway):
    """Asserts the notification row already exists when delivery starts."""

    def deliver(self, *, customer_id, channel, subject, message, notification_id=None):
        self.seen_rows = Notification.objects.filter(pk=notification_id).count()
        return super().deliver(
            customer_id=customer_id,
            channel=channel,
            subject=subject,
            message=message,
            notification_id=notification_id,
        )


class NotificationDispatcherTests(TestCase):
    """
    GUARANTEES:
    - The record exists before any delivery attempt
    - Channels succeed or fail independently
    - send() never raises
    """

    def setUp(self):
        self.customer = User.objects.create_user(email="asha@example.com", first_name="Asha", role="customer")

    def test_record_is_persisted_before_delivery(self):
        gateway = RecordCheckingGateway()
        NotificationDispatcher(gateway=gateway).send_custom(
            customer_id=self.customer.pk,
            message="Your bangles are ready",
            channels=["sms"],
        )
        self.assertEqual(gateway.seen_rows, 1)

    def test_one_channel_failing_does_not_block_others(self):
        gateway = FlakyGateway("sms")
        notification = NotificationDispatcher(gateway=gateway).send(
            customer_id=self.customer.pk,
            notification_type=Notification.TYPE_CUSTOM_MESSAGE,
            channels=["whatsapp", "sms", "email"],
            template_data={"message": "Hello", "subject": "Hi"},
        )

        self.assertEqual(
            notification.delivery_status,
            {"whatsapp": "sent", "sms": "failed", "email": "sent"},
        )
        self.assertEqual(notification.status, Notification.STATUS_SENT)
        self.assertIsNotNone(notification.sent_at)
        self.assertEqual([d["channel"] for d in gateway.deliveries], ["whatsapp", "email"])

    def test_unknown_channel_is_skipped(self):
        notification = NotificationDispatcher(gateway=LocalChannelGateway()).send(
            customer_id=self.customer.pk,
            notification_type=Notification.TYPE_CUSTOM_MESSAGE,
            channels=["pager", "sms"],
            template_data={"message": "Hello"},
        )
        self.assertEqual(notification.delivery_status, {"pager": "skipped", "sms": "sent"})

    def test_unknown_customer_returns_none(self):
        result = NotificationDispatcher(gateway=LocalChannelGateway()).send(
            customer_id="8a4cf4a4-0000-0000-0000-000000000000",
            notification_type=Notification.TYPE_CUSTOM_MESSAGE,
            channels=["sms"],
        )
        self.assertIsNone(result)
        self.assertFalse(Notification.objects.exists())

    def test_send_never_raises(self):
        result = NotificationDispatcher(gateway=LocalChannelGateway()).send(
            customer_id="not-a-uuid",
            notification_type=Notification.TYPE_CUSTOM_MESSAGE,
            channels=["sms"],
        )
        self.assertIsNone(result)

    def test_message_is_rendered_from_template(self):
        gateway = LocalChannelGateway()
        NotificationDispatcher(gateway=gateway).send_custom(
            customer_id=self.customer.pk,
            subject="Pickup",
            message="Your ring is ready, {customer_name}",
            channels=["email"],
        )
        self.assertEqual(gateway.deliveries[0]["subject"], "Pickup")

    def test_store_template_overrides_default(self):
        NotificationTemplate.objects.create(
            notification_type=Notification.TYPE_CUSTOM_MESSAGE,
            channel="sms",
            subject="",
            template="Dear {customer_name}: {message}",
        )
        gateway = LocalChannelGateway()
        NotificationDispatcher(gateway=gateway).send_custom(
            customer_id=self.customer.pk,
            message="Shop closed tomorrow",
            channels=["sms"],
        )
        self.assertEqual(gateway.deliveries[0]["message"], "Dear Asha: Shop closed tomorrow")

    def test_inactive_store_template_falls_back_to_default(self):
        NotificationTemplate.objects.create(
            notification_type=Notification.TYPE_CUSTOM_MESSAGE,
            channel="sms",
            template="unused",
            is_active=False,
        )
        resolved = resolve_template(Notification.TYPE_CUSTOM_MESSAGE, "sms")
        self.assertEqual(resolved.source, "default")

    def test_history_requires_known_entity(self):
        dispatcher = NotificationDispatcher(gateway=LocalChannelGateway())
        with self.assertRaises(ValueError):
            dispatcher.history_for("invoice", 1)


class TemplateRenderingTests(TestCase):
    def test_missing_placeholders_are_left_visible(self):
        self.assertEqual(render("Hi {customer_name}, {unknown}", {"customer_name": "Asha"}), "Hi Asha, {unknown}")

    def test_malformed_template_is_sent_raw(self):
        self.assertEqual(render("Hi {customer_name", {"customer_name": "Asha"}), "Hi {customer_name")

    def test_seed_command_is_idempotent(self):
        out = StringIO()
        call_command("seed_notification_templates", stdout=out)
        self.assertEqual(NotificationTemplate.objects.count(), len(DEFAULT_TEMPLATES))

        row = NotificationTemplate.objects.first()
        row.template = "edited"
        row.save()

        call_command("seed_notification_templates", stdout=out)
        row.refresh_from_db()
        self.assertEqual(row.template, "edited")

        call_command("seed_notification_templates", "--overwrite", stdout=out)
        row.refresh_from_db()
        self.assertNotEqual(row.template, "edited")


class SendNotificationAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(email="sales@example.com", password="pass", role="sales")
        self.technician = User.objects.create_user(email="tech@example.com", password="pass", role="technician")
        self.customer = User.objects.create_user(email="asha@example.com", role="customer")

    def test_staff_can_send(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            "/api/notifications/send/",
            {
                "customer_id": str(self.customer.pk),
                "notification_type": "custom_message",
                "channels": ["sms", "whatsapp"],
                "message": "Gold rate drop this weekend",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["delivery_status"], {"sms": "sent", "whatsapp": "sent"})

    def test_unknown_customer_is_404(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            "/api/notifications/send/",
            {
                "customer_id": "8a4cf4a4-0000-0000-0000-000000000000",
                "notification_type": "custom_message",
                "channels": ["sms"],
                "message": "hi",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_unknown_related_order_is_404(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            "/api/notifications/send/",
            {
                "customer_id": str(self.customer.pk),
                "notification_type": "custom_message",
                "channels": ["sms"],
                "message": "hi",
                "order_id": 999,
            },
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_technician_cannot_send(self):
        self.client.force_authenticate(user=self.technician)
        response = self.client.post(
            "/api/notifications/send/",
            {"customer_id": str(self.customer.pk), "notification_type": "custom_message", "channels": ["sms"]},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_template_list_and_update(self):
        template = NotificationTemplate.objects.create(
            notification_type="order_created", channel="sms", template="Order {order_number}"
        )
        self.client.force_authenticate(user=self.staff)

        response = self.client.get("/api/notifications/templates/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)

        response = self.client.put(
            f"/api/notifications/templates/{template.pk}/",
            {"notification_type": "order_created", "channel": "sms", "template": "New {order_number}", "is_active": True},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        template.refresh_from_db()
        self.assertEqual(template.template, "New {order_number}")
