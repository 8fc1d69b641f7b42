# history/tests/test_status_history.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase

from history.models import StatusHistoryEntry
from history.services.status_history import StatusHistoryLog

User = get_user_model()


class StatusHistoryLogTests(TestCase):
    def setUp(self):
        self.log = StatusHistoryLog()
        self.staff = User.objects.create_user(
            email="staff@example.com", password="pass", role="sales"
        )

    def test_record_and_read_back_in_order(self):
        self.log.record(entity_type="order", entity_id=1, status="pending", changed_by=self.staff, notes="Order created")
        self.log.record(entity_type="order", entity_id=1, status="confirmed", changed_by=self.staff)
        self.log.record(entity_type="repair", entity_id=1, status="received")

        entries = list(self.log.for_entity("order", 1))
        self.assertEqual([e.status for e in entries], ["pending", "confirmed"])
        self.assertEqual(entries[0].notes, "Order created")
        self.assertEqual(entries[0].changed_by, self.staff)

    def test_anonymous_actor_is_stored_as_null(self):
        entry = self.log.record(entity_type="return", entity_id=3, status="requested", changed_by=object())
        self.assertIsNone(entry.changed_by)

    def test_unknown_entity_type_rejected(self):
        with self.assertRaises(ValueError):
            self.log.record(entity_type="invoice", entity_id=1, status="sent")

    def test_entries_cannot_be_updated(self):
        entry = self.log.record(entity_type="order", entity_id=1, status="pending")
        entry.notes = "rewritten"
        with self.assertRaises(RuntimeError):
            entry.save()

    def test_entries_cannot_be_deleted(self):
        entry = self.log.record(entity_type="order", entity_id=1, status="pending")
        with self.assertRaises(RuntimeError):
            entry.delete()
        self.assertTrue(StatusHistoryEntry.objects.filter(pk=entry.pk).exists())
