# repairs/tests/test_repairs.py

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import connection
from django.test import TestCase, TransactionTestCase
from django.utils import timezone
from rest_framework.test import APIClient

from core.exceptions import InvalidStateError, InvalidTransitionError, NotFoundError, ValidationError
from history.models import StatusHistoryEntry
from integrations.local import LocalChannelGateway, LocalInventoryClient, LocalPricingClient
from notifications.models import Notification
from notifications.services.dispatcher import NotificationDispatcher
from orders.services.order_service import OrderLifecycle
from repairs.models import RepairRequest
from repairs.services.repair_lifecycle import is_valid_transition
from repairs.services.repair_service import RepairLifecycle

User = get_user_model()

FULL_PATH = ["assessed", "approved", "in_progress", "completed", "ready_for_pickup", "delivered"]


class RepairLifecycleTests(TestCase):
    """
    GUARANTEES:
    - Status only moves along the repair graph
    - Approval is only recorded after assessment
    - Customers hear about received / status / cost changes
    """

    def setUp(self):
        self.staff = User.objects.create_user(email="sales@example.com", password="pass", role="sales")
        self.technician = User.objects.create_user(email="tech@example.com", password="pass", role="technician")
        self.customer = User.objects.create_user(email="asha@example.com", first_name="Asha", role="customer")

        self.gateway = LocalChannelGateway()
        notifier = NotificationDispatcher(gateway=self.gateway)
        self.order = OrderLifecycle(
            pricing=LocalPricingClient(),
            inventory=LocalInventoryClient(),
            notifier=notifier,
        ).create_order(
            customer_id=self.customer.pk,
            staff=self.staff,
            items=[{"jewelry_item_id": "RING-1", "quantity": 1, "unit_price": "12000"}],
        )
        self.lifecycle = RepairLifecycle(notifier=notifier)

    def _create(self, **overrides):
        kwargs = {
            "order_id": self.order.pk,
            "item_description": "Gold ring",
            "problem_description": "Loose stone",
            "repair_type": "stone_replacement",
            "estimated_cost": "800",
            "actor": self.staff,
        }
        kwargs.update(overrides)
        with self.captureOnCommitCallbacks(execute=True):
            return self.lifecycle.create_repair(**kwargs)

    def _move(self, repair, *statuses):
        for status in statuses:
            with self.captureOnCommitCallbacks(execute=True):
                repair = self.lifecycle.update_status(repair.pk, status, actor=self.technician)
        return repair

    # --------------------------------------------------
    # Create
    # --------------------------------------------------

    def test_create_starts_received_with_history_and_notification(self):
        repair = self._create(technician_id=self.technician.pk, requires_approval=True)

        self.assertEqual(repair.status, RepairRequest.STATUS_RECEIVED)
        self.assertEqual(repair.estimated_cost, Decimal("800.00"))
        self.assertTrue(repair.customer_approval_required)
        self.assertIsNone(repair.customer_approved)
        self.assertEqual(repair.technician, self.technician)

        entry = StatusHistoryEntry.objects.get(entity_type="repair", entity_id=repair.pk)
        self.assertEqual(entry.notes, "Repair request received")

        notification = Notification.objects.get(repair=repair)
        self.assertEqual(notification.notification_type, Notification.TYPE_REPAIR_UPDATE)
        self.assertEqual(notification.template_data["event"], "received")
        self.assertEqual(set(notification.channels), {"whatsapp", "sms"})

    def test_create_for_missing_order(self):
        with self.assertRaises(NotFoundError):
            self._create(order_id=999999)
        self.assertFalse(RepairRequest.objects.exists())

    def test_create_validates_input(self):
        with self.assertRaises(ValidationError):
            self._create(repair_type="welding")
        with self.assertRaises(ValidationError):
            self._create(problem_description="  ")
        with self.assertRaises(ValidationError):
            self._create(estimated_cost="-1")

    def test_customer_cannot_be_technician(self):
        with self.assertRaises(ValidationError):
            self._create(technician_id=self.customer.pk)

    # --------------------------------------------------
    # Status
    # --------------------------------------------------

    def test_cannot_jump_straight_to_delivered(self):
        repair = self._create()
        with self.assertRaises(InvalidTransitionError):
            self.lifecycle.update_status(repair.pk, "delivered", actor=self.technician)

        repair.refresh_from_db()
        self.assertEqual(repair.status, RepairRequest.STATUS_RECEIVED)

    def test_full_path_to_delivered(self):
        repair = self._move(self._create(), *FULL_PATH)

        self.assertEqual(repair.status, RepairRequest.STATUS_DELIVERED)
        statuses = [e.status for e in self.lifecycle.get_status_history(repair.pk)]
        self.assertEqual(statuses, ["received", *FULL_PATH])
        self.assertEqual(Notification.objects.filter(repair=repair).count(), 1 + len(FULL_PATH))

    def test_cancel_only_before_completion(self):
        repair = self._move(self._create(), "assessed", "approved", "in_progress")
        self._move(repair, "cancelled")

        other = self._move(self._create(), "assessed", "approved", "in_progress", "completed")
        with self.assertRaises(InvalidTransitionError):
            self.lifecycle.update_status(other.pk, "cancelled", actor=self.technician)

    def test_terminal_states_have_no_exits(self):
        repair = self._move(self._create(), "cancelled")
        with self.assertRaises(InvalidTransitionError):
            self.lifecycle.update_status(repair.pk, "received", actor=self.technician)

    # --------------------------------------------------
    # Update
    # --------------------------------------------------

    def test_approval_before_assessment_is_refused(self):
        repair = self._create(requires_approval=True)
        with self.assertRaises(InvalidStateError):
            self.lifecycle.update_repair(repair.pk, actor=self.staff, customer_approved=True)

        repair.refresh_from_db()
        self.assertIsNone(repair.customer_approved)

    def test_approval_after_assessment_notifies(self):
        repair = self._move(self._create(requires_approval=True), "assessed")
        before = Notification.objects.filter(repair=repair).count()

        with self.captureOnCommitCallbacks(execute=True):
            repair = self.lifecycle.update_repair(repair.pk, actor=self.staff, customer_approved=True)

        self.assertTrue(repair.customer_approved)
        latest = Notification.objects.filter(repair=repair).order_by("-id").first()
        self.assertEqual(Notification.objects.filter(repair=repair).count(), before + 1)
        self.assertEqual(latest.template_data["event"], "updated")
        self.assertEqual(latest.template_data["status_label"], "updated")

    def test_notes_only_update_is_silent(self):
        repair = self._create()
        before = Notification.objects.filter(repair=repair).count()

        with self.captureOnCommitCallbacks(execute=True):
            repair = self.lifecycle.update_repair(repair.pk, actor=self.staff, repair_notes="Needs 2mm stone")

        self.assertEqual(repair.repair_notes, "Needs 2mm stone")
        self.assertEqual(repair.status, RepairRequest.STATUS_RECEIVED)
        self.assertEqual(Notification.objects.filter(repair=repair).count(), before)

    def test_cost_update_and_technician_reassignment(self):
        repair = self._create()
        with self.captureOnCommitCallbacks(execute=True):
            repair = self.lifecycle.update_repair(
                repair.pk,
                actor=self.staff,
                actual_cost="950.50",
                technician_id=self.technician.pk,
            )
        self.assertEqual(repair.actual_cost, Decimal("950.50"))
        self.assertEqual(repair.technician, self.technician)

        repair = self.lifecycle.update_repair(repair.pk, actor=self.staff, technician_id=None)
        self.assertIsNone(repair.technician)

    def test_unknown_fields_are_rejected(self):
        repair = self._create()
        with self.assertRaises(ValidationError):
            self.lifecycle.update_repair(repair.pk, actor=self.staff, status="delivered")

    # --------------------------------------------------
    # Photos / queue / list
    # --------------------------------------------------

    def test_photos_are_replaced_wholesale(self):
        repair = self._create()
        self.lifecycle.upload_photos(repair.pk, photos=["https://cdn.example.com/a.jpg"], photo_type="before")
        repair = self.lifecycle.upload_photos(
            repair.pk,
            photos=["https://cdn.example.com/b.jpg", "https://cdn.example.com/c.jpg"],
            photo_type="before",
        )
        self.assertEqual(repair.before_photos, ["https://cdn.example.com/b.jpg", "https://cdn.example.com/c.jpg"])
        self.assertEqual(repair.after_photos, [])
        self.assertEqual(repair.status, RepairRequest.STATUS_RECEIVED)

    def test_unknown_photo_type(self):
        repair = self._create()
        with self.assertRaises(ValidationError):
            self.lifecycle.upload_photos(repair.pk, photos=[], photo_type="during")

    def test_queue_orders_by_due_date_with_undated_last(self):
        now = timezone.now()
        undated = self._create()
        late = self._create(estimated_completion=now + timedelta(days=5))
        soon = self._create(estimated_completion=now + timedelta(days=1))
        done = self._move(self._create(estimated_completion=now), "assessed", "approved", "in_progress", "completed")

        queue = list(self.lifecycle.get_repair_queue())
        self.assertEqual([r.pk for r in queue], [soon.pk, late.pk, undated.pk])
        self.assertNotIn(done.pk, [r.pk for r in queue])

    def test_queue_for_one_technician(self):
        mine = self._create(technician_id=self.technician.pk)
        self._create()
        self.assertEqual([r.pk for r in self.lifecycle.get_repair_queue(self.technician.pk)], [mine.pk])

    def test_list_filters(self):
        self._create(repair_type="cleaning")
        self._create()
        self.assertEqual(self.lifecycle.list_repairs({"repair_type": "cleaning"}).count(), 1)
        self.assertEqual(self.lifecycle.list_repairs({"customer_id": self.customer.pk}).count(), 2)
        self.assertEqual(self.lifecycle.list_repairs({"status": "assessed"}).count(), 0)


class RepairAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.technician = User.objects.create_user(email="tech@example.com", password="pass", role="technician")
        self.customer = User.objects.create_user(email="asha@example.com", role="customer")
        self.order = OrderLifecycle(notifier=NotificationDispatcher(gateway=LocalChannelGateway())).create_order(
            customer_id=self.customer.pk,
            staff=None,
            items=[{"jewelry_item_id": "RING-1", "quantity": 1, "unit_price": "12000"}],
        )
        self.client.force_authenticate(user=self.technician)

    def _create(self):
        response = self.client.post(
            "/api/repairs/",
            {
                "order_id": self.order.pk,
                "item_description": "Chain",
                "problem_description": "Broken clasp",
                "repair_type": "clasp_repair",
                "estimated_cost": "300.00",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        return response.data

    def test_create_move_and_read_history(self):
        data = self._create()
        self.assertEqual(data["status"], "received")

        response = self.client.put(f"/api/repairs/{data['id']}/status/", {"status": "assessed"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "assessed")

        response = self.client.get(f"/api/repairs/{data['id']}/history/")
        self.assertEqual([e["status"] for e in response.data], ["received", "assessed"])

    def test_skipping_steps_is_409(self):
        data = self._create()
        response = self.client.put(f"/api/repairs/{data['id']}/status/", {"status": "delivered"}, format="json")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["error"]["code"], "INVALID_TRANSITION")

    def test_early_approval_is_409(self):
        data = self._create()
        response = self.client.put(f"/api/repairs/{data['id']}/", {"customer_approved": True}, format="json")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["error"]["code"], "INVALID_STATE")

    def test_photos_and_queue(self):
        data = self._create()
        response = self.client.post(
            f"/api/repairs/{data['id']}/photos/",
            {"photo_type": "after", "photos": ["https://cdn.example.com/x.jpg"]},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["after_photos"], ["https://cdn.example.com/x.jpg"])

        response = self.client.get("/api/repairs/queue/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([r["id"] for r in response.data], [data["id"]])

    def test_customer_is_forbidden(self):
        self.client.force_authenticate(user=self.customer)
        self.assertEqual(self.client.get("/api/repairs/").status_code, 403)


REPAIR_MOVES = {
    "received": {"assessed", "cancelled"},
    "assessed": {"approved", "cancelled"},
    "approved": {"in_progress", "cancelled"},
    "in_progress": {"completed", "cancelled"},
    "completed": {"ready_for_pickup"},
    "ready_for_pickup": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


class RepairTransitionTableTests(TestCase):
    def setUp(self):
        self.staff = User.objects.create_user(email="sales@example.com", password="pass", role="sales")
        customer = User.objects.create_user(email="asha@example.com", role="customer")
        notifier = NotificationDispatcher(gateway=LocalChannelGateway())
        order = OrderLifecycle(
            pricing=LocalPricingClient(),
            inventory=LocalInventoryClient(),
            notifier=notifier,
        ).create_order(
            customer_id=customer.pk,
            staff=self.staff,
            items=[{"jewelry_item_id": "RING-1", "quantity": 1, "unit_price": "12000"}],
        )
        self.lifecycle = RepairLifecycle(notifier=notifier)
        self.repair = self.lifecycle.create_repair(
            order_id=order.pk,
            item_description="Gold ring",
            problem_description="Bent shank",
            repair_type="resizing",
            estimated_cost="500",
            actor=self.staff,
        )

    def test_graph_matches_every_status_pair(self):
        statuses = [value for value, _label in RepairRequest.STATUS_CHOICES]
        self.assertEqual(set(statuses), set(REPAIR_MOVES))
        for current in statuses:
            for target in statuses:
                with self.subTest(current=current, target=target):
                    self.assertEqual(is_valid_transition(current, target), target in REPAIR_MOVES[current])

    def test_disallowed_moves_leave_status_untouched(self):
        for current, allowed in REPAIR_MOVES.items():
            RepairRequest.objects.filter(pk=self.repair.pk).update(status=current)
            for target in set(REPAIR_MOVES) - allowed:
                with self.subTest(current=current, target=target):
                    with self.assertRaises(InvalidTransitionError):
                        self.lifecycle.update_status(self.repair.pk, target, actor=self.staff)
                    self.assertEqual(RepairRequest.objects.get(pk=self.repair.pk).status, current)


class RepairCreateTransactionTests(TransactionTestCase):
    def setUp(self):
        self.staff = User.objects.create_user(email="sales@example.com", password="pass", role="sales")
        self.technician = User.objects.create_user(email="tech@example.com", password="pass", role="technician")
        self.customer = User.objects.create_user(email="asha@example.com", role="customer")
        notifier = NotificationDispatcher(gateway=LocalChannelGateway())
        self.order = OrderLifecycle(
            pricing=LocalPricingClient(),
            inventory=LocalInventoryClient(),
            notifier=notifier,
        ).create_order(
            customer_id=self.customer.pk,
            staff=self.staff,
            items=[{"jewelry_item_id": "RING-1", "quantity": 1, "unit_price": "12000"}],
        )
        self.lifecycle = RepairLifecycle(notifier=notifier)

    def _create(self, technician_id):
        return self.lifecycle.create_repair(
            order_id=self.order.pk,
            item_description="Gold ring",
            problem_description="Loose stone",
            repair_type="stone_replacement",
            estimated_cost="800",
            actor=self.staff,
            technician_id=technician_id,
        )

    def test_order_and_technician_are_read_inside_the_transaction(self):
        seen = []
        original = self.lifecycle._technician

        def spy(technician_id):
            seen.append(connection.in_atomic_block)
            return original(technician_id)

        with mock.patch.object(self.lifecycle, "_technician", side_effect=spy):
            repair = self._create(self.technician.pk)

        self.assertEqual(seen, [True])
        self.assertEqual(repair.technician, self.technician)

    def test_rejected_technician_leaves_nothing_behind(self):
        with self.assertRaises(ValidationError):
            self._create(self.customer.pk)
        self.assertFalse(RepairRequest.objects.exists())
        self.assertFalse(StatusHistoryEntry.objects.filter(entity_type="repair").exists())
