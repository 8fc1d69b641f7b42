# users/tests/test_users.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

User = get_user_model()


class UserManagerTests(TestCase):
    def test_customer_defaults(self):
        user = User.objects.create_user(email="  Buyer@Example.COM ", first_name="Asha")
        self.assertEqual(user.role, User.ROLE_CUSTOMER)
        self.assertTrue(user.is_customer)
        self.assertFalse(user.has_usable_password())
        self.assertEqual(user.email, "Buyer@example.com")

    def test_email_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email="")

    def test_superuser_is_owner(self):
        user = User.objects.create_superuser(email="root@example.com", password="pass")
        self.assertEqual(user.role, User.ROLE_OWNER)
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)

    def test_full_name_falls_back_to_email(self):
        user = User.objects.create_user(email="anon@example.com")
        self.assertEqual(user.full_name, "anon@example.com")


class MeEndpointTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="sales@example.com",
            password="pass",
            role=User.ROLE_SALES,
            first_name="Ravi",
        )

    def test_requires_auth(self):
        res = self.client.get(reverse("users:me"))
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("error", res.data)

    def test_returns_profile_with_capabilities(self):
        self.client.force_authenticate(self.user)
        res = self.client.get(reverse("users:me"))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["role"], "sales")
        self.assertIn("orders.manage", res.data["capabilities"])
        self.assertNotIn("returns.process", res.data["capabilities"])
