# integrations/http.py

"""
JSON OVER HTTP (urllib)

Shared transport for every collaborator service.

Rules:
- Fixed timeout per call (settings.INTEGRATIONS["TIMEOUT"])
- Any transport error, non-2xx answer or non-JSON body -> DependencyError
- The caller decides whether a DependencyError is fatal
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from core.exceptions import DependencyError

logger = logging.getLogger(__name__)


def _safe_preview(text: str, limit: int = 300) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _json_default(value):
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonHttpClient:
    def __init__(self, *, service: str, base_url: str, timeout: float = 5.0):
        self.service = service
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout

    def request(self, method: str, path: str, *, body: dict | None = None) -> dict[str, Any]:
        if not self.base_url:
            raise DependencyError(f"{self.service} service URL is not configured")

        url = f"{self.base_url}{path}"
        data = None
        if body is not None:
            data = json.dumps(body, default=_json_default).encode("utf-8")

        req = Request(
            url,
            data=data,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            method=method,
        )

        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
        except HTTPError as e:
            try:
                raw = e.read().decode("utf-8", errors="replace")
            except OSError:
                raw = ""
            logger.warning(
                "Collaborator rejected request",
                extra={"service": self.service, "url": url, "http_status": e.code},
            )
            raise DependencyError(
                f"{self.service} service returned HTTP {e.code}",
                details={"body": _safe_preview(raw)},
            ) from e
        except (URLError, TimeoutError, OSError) as e:
            logger.warning(
                "Collaborator unreachable",
                extra={"service": self.service, "url": url, "error": str(e)},
            )
            raise DependencyError(f"{self.service} service unreachable: {e}") from e

        if not raw.strip():
            return {}

        try:
            parsed = json.loads(raw)
        except ValueError as e:
            raise DependencyError(
                f"{self.service} service returned non-JSON",
                details={"body": _safe_preview(raw)},
            ) from e

        if not isinstance(parsed, dict):
            raise DependencyError(f"{self.service} service returned a non-object payload")
        return parsed

    @staticmethod
    def data_of(payload: dict[str, Any]) -> dict[str, Any]:
        """Services wrap results as {"data": {...}}."""
        data = payload.get("data")
        return data if isinstance(data, dict) else {}
