# integrations/gateway.py

from __future__ import annotations

from .http import JsonHttpClient

DELIVERY_SENT = "sent"
DELIVERY_FAILED = "failed"


class HttpChannelGateway:
    """Hands one rendered message to the external channel gateway."""

    def __init__(self, http: JsonHttpClient):
        self.http = http

    def deliver(self, *, customer_id, channel: str, subject: str, message: str, notification_id=None) -> str:
        data = self.http.data_of(
            self.http.request(
                "POST",
                "/api/notifications/send",
                body={
                    "customer_id": str(customer_id),
                    "channel": channel,
                    "subject": subject,
                    "message": message,
                    "notification_id": notification_id,
                },
            )
        )
        status = str(data.get("status") or DELIVERY_SENT).lower()
        return DELIVERY_SENT if status in {"sent", "delivered", "queued"} else DELIVERY_FAILED
