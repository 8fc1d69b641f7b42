# integrations/inventory.py

from __future__ import annotations

from .http import JsonHttpClient


class HttpInventoryClient:
    """adjust_stock(item, delta): positive restocks, negative debits."""

    def __init__(self, http: JsonHttpClient):
        self.http = http

    def adjust_stock(self, jewelry_item_id, quantity_change: int) -> None:
        self.http.request(
            "PUT",
            f"/api/inventory/{jewelry_item_id}/stock",
            body={"quantity_change": int(quantity_change)},
        )
