"""
HTTP client for the declaration tracker API.

Every transport failure and every non-2xx response surfaces as
``TransientNetworkError``; nothing is retried here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.errors import TransientNetworkError
from app.schemas import CustomerResponse, DeclarationResponse

logger = logging.getLogger(__name__)


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    cursor: Optional[str] = None


def _clean(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if v not in (None, "")}


class TrackerClient:
    """Thin wrapper over the REST endpoints.

    ``http`` may be any ``httpx.Client`` whose base URL points at the API
    root, e.g. a FastAPI ``TestClient``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self._http = http or httpx.Client(base_url=base_url or settings.API_BASE_URL, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransientNetworkError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            try:
                body = response.json()
                message = body.get("error") or body.get("detail") or response.text
            except ValueError:
                message = response.text
            logger.warning("%s %s -> %d: %s", method, path, response.status_code, message)
            raise TransientNetworkError(str(message), status_code=response.status_code)
        return response.json()

    # ── customers ────────────────────────────────────────────────────────
    def create_customer(self, name: str, tax_no: str, ledger_type: str) -> str:
        body = self._request(
            "POST", "customers", json={"name": name, "tax_no": tax_no, "ledger_type": ledger_type}
        )
        return body["id"]

    def list_customers(self, limit: int, last_visible: Optional[str] = None) -> Page:
        body = self._request("GET", "customers", params=_clean({"limit": limit, "lastVisible": last_visible}))
        return Page(
            items=[CustomerResponse.model_validate(c) for c in body["customers"]],
            cursor=body.get("lastVisible"),
        )

    def count_customers(self) -> int:
        return self._request("GET", "customers/count")["count"]

    def delete_customer(self, customer_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"customers/{customer_id}")

    # ── declarations ─────────────────────────────────────────────────────
    def create_declaration(
        self,
        customer_id: str,
        type: str,
        month: int,
        year: int,
        ledger_type: Optional[str] = None,
    ) -> str:
        payload = _clean(
            {"customer_id": customer_id, "type": type, "month": month, "year": year, "ledger_type": ledger_type}
        )
        return self._request("POST", "declarations", json=payload)["id"]

    def list_declarations(
        self,
        filters: Optional[Dict[str, Any]],
        limit: int,
        last_visible: Optional[str] = None,
    ) -> Page:
        params = _clean(dict(filters or {}, limit=limit, lastVisible=last_visible))
        body = self._request("GET", "declarations", params=params)
        return Page(
            items=[DeclarationResponse.model_validate(d) for d in body["declarations"]],
            cursor=body.get("lastVisible"),
        )

    def list_declaration_types(self) -> List[str]:
        return self._request("GET", "declarations/types")["types"]

    def update_declaration(
        self,
        declaration_id: str,
        status: str,
        completed_at: Optional[datetime] = None,
        note: str = "",
    ) -> None:
        payload = {
            "status": status,
            "completed_at": completed_at.isoformat() if completed_at else None,
            "note": note,
        }
        self._request("PUT", f"declarations/{declaration_id}", json=payload)

    def delete_declaration(self, declaration_id: str) -> None:
        self._request("DELETE", f"declarations/{declaration_id}")
