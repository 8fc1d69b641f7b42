# core/tests/test_api.py

from __future__ import annotations

from django.http import Http404
from django.test import SimpleTestCase, override_settings
from rest_framework import serializers
from rest_framework.exceptions import NotAuthenticated

from core.api import api_exception_handler
from core.exceptions import DependencyError, InvalidStateError, NotFoundError


class _Input(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)


class ExceptionHandlerTests(SimpleTestCase):
    context = {"view": None}

    def test_lifecycle_error_envelope(self):
        res = api_exception_handler(InvalidStateError("Order is completed"), self.context)
        self.assertEqual(res.status_code, 409)
        self.assertEqual(
            res.data,
            {"error": {"code": "INVALID_STATE", "message": "Order is completed"}},
        )

    def test_details_are_carried(self):
        res = api_exception_handler(
            NotFoundError("Order not found", details={"order_id": 9}), self.context
        )
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["details"], {"order_id": 9})

    def test_dependency_error_is_bad_gateway(self):
        res = api_exception_handler(DependencyError("pricing down"), self.context)
        self.assertEqual(res.status_code, 502)
        self.assertEqual(res.data["error"]["code"], "DEPENDENCY_FAILED")

    @override_settings(DEBUG=True)
    def test_debug_exposes_type(self):
        res = api_exception_handler(InvalidStateError("nope"), self.context)
        self.assertEqual(res.data["error"]["debug"], {"type": "InvalidStateError"})

    def test_no_debug_block_outside_debug(self):
        res = api_exception_handler(InvalidStateError("nope"), self.context)
        self.assertNotIn("debug", res.data["error"])

    def test_serializer_errors_are_wrapped(self):
        s = _Input(data={"amount": "abc"})
        s.is_valid()
        exc = serializers.ValidationError(s.errors)
        res = api_exception_handler(exc, self.context)
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID")
        self.assertEqual(res.data["error"]["message"], "Validation failed")
        self.assertIn("amount", res.data["error"]["details"])

    def test_detail_only_payload_becomes_message(self):
        res = api_exception_handler(NotAuthenticated(), self.context)
        self.assertEqual(res.data["error"]["code"], "NOT_AUTHENTICATED")
        self.assertNotIn("details", res.data["error"])

    def test_http404(self):
        res = api_exception_handler(Http404(), self.context)
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    def test_unhandled_is_internal_error(self):
        with self.assertLogs("core.api", level="ERROR"):
            res = api_exception_handler(RuntimeError("boom"), self.context)
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.data["error"]["code"], "INTERNAL_ERROR")
