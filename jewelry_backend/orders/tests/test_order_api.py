# orders/tests/test_order_api.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from orders.models import Order

User = get_user_model()

ITEMS = [
    {"jewelry_item_id": "RING-1", "item_name": "Gold Ring", "quantity": 1, "unit_price": "10000.00"},
    {"jewelry_item_id": "CHAIN-2", "item_name": "Silver Chain", "quantity": 1, "unit_price": "5000.00"},
]


class OrderAPITests(TestCase):
    """
    Endpoint contract: status codes, error envelope, permissions.
    """

    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(email="sales@example.com", password="pass", role="sales")
        self.technician = User.objects.create_user(email="tech@example.com", password="pass", role="technician")
        self.customer = User.objects.create_user(email="asha@example.com", first_name="Asha", role="customer")
        self.client.force_authenticate(user=self.staff)

    def _create(self):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                "/api/orders/",
                {"customer_id": str(self.customer.pk), "items": ITEMS},
                format="json",
            )
        self.assertEqual(response.status_code, 201, response.data)
        return response.data

    def test_create_and_retrieve(self):
        data = self._create()
        self.assertEqual(data["status"], "pending")
        self.assertEqual(data["total_amount"], "17304.00")
        self.assertEqual(len(data["items"]), 2)

        response = self.client.get(f"/api/orders/{data['id']}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["order_number"], data["order_number"])

    def test_create_without_items_uses_error_envelope(self):
        response = self.client.post(
            "/api/orders/",
            {"customer_id": str(self.customer.pk), "items": []},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VALIDATION_ERROR")

    def test_missing_order_is_404(self):
        response = self.client.get("/api/orders/999999/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["code"], "NOT_FOUND")

    def test_invalid_transition_is_409(self):
        data = self._create()
        response = self.client.put(
            f"/api/orders/{data['id']}/status/",
            {"status": "completed"},
            format="json",
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["error"]["code"], "INVALID_TRANSITION")
        self.assertEqual(Order.objects.get(pk=data["id"]).status, "pending")

    def test_status_then_history(self):
        data = self._create()
        response = self.client.put(
            f"/api/orders/{data['id']}/status/",
            {"status": "confirmed", "notes": "deposit received"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "confirmed")

        response = self.client.get(f"/api/orders/{data['id']}/history/")
        self.assertEqual([e["status"] for e in response.data], ["pending", "confirmed"])
        self.assertEqual(response.data[1]["notes"], "deposit received")

    def test_cancel(self):
        data = self._create()
        response = self.client.put(f"/api/orders/{data['id']}/cancel/", {"reason": "duplicate"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "cancelled")

    def test_invoice_is_a_pdf(self):
        data = self._create()
        response = self.client.get(f"/api/orders/{data['id']}/invoice/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertIn(f"INV-{data['order_number']}", response["Content-Disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_notification_history_for_order(self):
        data = self._create()
        response = self.client.get(f"/api/orders/{data['id']}/notifications/history/")
        self.assertEqual(response.status_code, 200)
        results = response.data["results"] if isinstance(response.data, dict) else response.data
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]["notification_type"], "order_created")

    def test_stats(self):
        self._create()
        response = self.client.get("/api/orders/stats/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total_orders"], 1)
        self.assertEqual(response.data["total_revenue"], "17304.00")

    # --------------------------------------------------
    # Permissions
    # --------------------------------------------------

    def test_anonymous_is_rejected(self):
        self.client.force_authenticate(user=None)
        response = self.client.get("/api/orders/")
        self.assertEqual(response.status_code, 401)

    def test_technician_can_read_but_not_create(self):
        data = self._create()
        self.client.force_authenticate(user=self.technician)

        self.assertEqual(self.client.get(f"/api/orders/{data['id']}/").status_code, 200)
        response = self.client.post(
            "/api/orders/",
            {"customer_id": str(self.customer.pk), "items": ITEMS},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_customer_cannot_list_orders(self):
        self.client.force_authenticate(user=self.customer)
        self.assertEqual(self.client.get("/api/orders/").status_code, 403)
