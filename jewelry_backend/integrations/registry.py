# integrations/registry.py

"""
Builds collaborator clients from settings.INTEGRATIONS.

    BACKEND = "http"  -> HttpPricingClient, HttpInventoryClient, ...
    BACKEND = "local" -> in-process implementations from integrations.local
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from . import local
from .gateway import HttpChannelGateway
from .http import JsonHttpClient
from .inventory import HttpInventoryClient
from .payment import HttpPaymentClient
from .pricing import HttpPricingClient

BACKEND_HTTP = "http"
BACKEND_LOCAL = "local"


def _config() -> dict:
    return getattr(settings, "INTEGRATIONS", {}) or {}


def _backend() -> str:
    backend = (_config().get("BACKEND") or BACKEND_HTTP).lower()
    if backend not in {BACKEND_HTTP, BACKEND_LOCAL}:
        raise ImproperlyConfigured(f"Unknown INTEGRATIONS_BACKEND: {backend!r}")
    return backend


def _http(service: str, url_key: str) -> JsonHttpClient:
    cfg = _config()
    return JsonHttpClient(
        service=service,
        base_url=cfg.get(url_key) or "",
        timeout=float(cfg.get("TIMEOUT") or 5.0),
    )


def get_pricing_client():
    if _backend() == BACKEND_LOCAL:
        return local.LocalPricingClient()
    return HttpPricingClient(_http("pricing", "PRICING_URL"))


def get_inventory_client():
    if _backend() == BACKEND_LOCAL:
        return local.LocalInventoryClient()
    return HttpInventoryClient(_http("inventory", "INVENTORY_URL"))


def get_payment_client():
    if _backend() == BACKEND_LOCAL:
        return local.LocalPaymentClient()
    return HttpPaymentClient(_http("payment", "PAYMENT_URL"))


def get_channel_gateway():
    if _backend() == BACKEND_LOCAL:
        return local.LocalChannelGateway()
    return HttpChannelGateway(_http("notification", "NOTIFICATION_URL"))
