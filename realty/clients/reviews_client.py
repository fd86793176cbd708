"""
HTTP client for the reviews API.

Every call degrades instead of raising: network errors, non-2xx responses and
unparseable bodies turn into an empty list, ``False`` or a failed
``SubmitResult``. Callers that need the detail can use ``request()``, which
returns an ``ApiResult`` with the status code and error text.
"""
import logging
from typing import Any, NamedTuple

import requests

from realty.config import settings

logger = logging.getLogger(__name__)


class ApiResult(NamedTuple):
    ok:     bool
    status: int | None = None
    data:   Any = None
    error:  str | None = None


class SubmitResult(NamedTuple):
    ok:     bool
    status: str


def _as_list(body: Any) -> list:
    """Accept a bare JSON array or an envelope whose `data` is the array."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return []


class ReviewsClient:

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or settings.REVIEWS_API_BASE_URL).rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else settings.REVIEWS_API_TIMEOUT
        self.session = session or requests.Session()

    def headers(self) -> dict:
        h = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    # ─── Transport ────────────────────────────────────────────────────────────
    def request(self, method: str, path: str, **kwargs) -> ApiResult:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.session.request(method, url, headers=self.headers(), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            return ApiResult(ok=False, error=str(e))

        try:
            body = resp.json() if resp.content else None
        except ValueError:
            body = None

        if not resp.ok:
            message = body.get("message") if isinstance(body, dict) else None
            return ApiResult(ok=False, status=resp.status_code, data=body, error=message or resp.reason)
        return ApiResult(ok=True, status=resp.status_code, data=body)

    # ─── Public ───────────────────────────────────────────────────────────────
    def fetch_approved_reviews(self, target_id: str, target_type: str = "property", limit: int = 20) -> list:
        result = self.request("GET", "reviews", params={
            "targetId":   target_id,
            "targetType": target_type,
            "status":     "approved",
            "limit":      limit,
        })
        return _as_list(result.data) if result.ok else []

    def submit_review(self, payload: dict) -> SubmitResult:
        result = self.request("POST", "reviews", json=payload)
        if not result.ok:
            return SubmitResult(ok=False, status=str(result.status) if result.status else "error")

        body = result.data if isinstance(result.data, dict) else {}
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        return SubmitResult(ok=True, status=data.get("status") or body.get("status") or "pending")

    # ─── Admin ────────────────────────────────────────────────────────────────
    def admin_list_pending(self, limit: int = 50) -> list:
        result = self.request("GET", "admin/reviews", params={"status": "pending", "limit": limit})
        return _as_list(result.data) if result.ok else []

    def admin_moderate(self, review_id: str | int, status: str, admin_note: str | None = None) -> bool:
        result = self.request("PATCH", f"admin/reviews/{review_id}", json={
            "status":    status,
            "adminNote": admin_note,
        })
        return result.ok
