# permissions/tests/test_roles.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase

from permissions.roles import (
    ALL_CAPABILITIES,
    CAP_ORDERS_MANAGE,
    CAP_REPAIRS_MANAGE,
    CAP_RETURNS_PROCESS,
    HasAnyCapability,
    HasCapability,
    IsStaff,
    effective_capabilities_for,
)

User = get_user_model()


class _View:
    required_capability = None
    required_any_capabilities = None


class CapabilityTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.manager = User.objects.create_user(
            email="manager@example.com", password="pass", role="manager"
        )
        self.sales = User.objects.create_user(
            email="sales@example.com", password="pass", role="sales"
        )
        self.technician = User.objects.create_user(
            email="tech@example.com", password="pass", role="technician"
        )
        self.customer = User.objects.create_user(email="buyer@example.com")

    def _request(self, user):
        request = self.factory.get("/")
        request.user = user
        return request

    def test_only_managers_and_owners_process_returns(self):
        self.assertIn(CAP_RETURNS_PROCESS, effective_capabilities_for(self.manager))
        self.assertNotIn(CAP_RETURNS_PROCESS, effective_capabilities_for(self.sales))

    def test_technician_manages_repairs_but_not_orders(self):
        caps = effective_capabilities_for(self.technician)
        self.assertIn(CAP_REPAIRS_MANAGE, caps)
        self.assertNotIn(CAP_ORDERS_MANAGE, caps)

    def test_superuser_gets_everything(self):
        root = User.objects.create_superuser(email="root@example.com", password="pass")
        self.assertEqual(effective_capabilities_for(root), ALL_CAPABILITIES)

    def test_has_capability_denies_when_view_declares_nothing(self):
        self.assertFalse(HasCapability().has_permission(self._request(self.manager), _View()))

    def test_has_capability(self):
        view = _View()
        view.required_capability = CAP_ORDERS_MANAGE
        self.assertTrue(HasCapability().has_permission(self._request(self.sales), view))
        self.assertFalse(HasCapability().has_permission(self._request(self.customer), view))

    def test_has_any_capability(self):
        view = _View()
        view.required_any_capabilities = {CAP_ORDERS_MANAGE, CAP_REPAIRS_MANAGE}
        self.assertTrue(HasAnyCapability().has_permission(self._request(self.technician), view))
        self.assertFalse(HasAnyCapability().has_permission(self._request(self.customer), view))

    def test_is_staff_excludes_customers(self):
        self.assertTrue(IsStaff().has_permission(self._request(self.sales), None))
        self.assertFalse(IsStaff().has_permission(self._request(self.customer), None))
