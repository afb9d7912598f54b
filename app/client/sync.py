"""
Client sync controller.

Holds the customer and declaration lists, the active declaration filters,
and applies status/note edits optimistically: the local item changes first,
the write goes to the server, and the pre-edit snapshot is put back if the
write fails. Successful writes are not re-fetched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from app.client.api import TrackerClient
from app.client.pagination import PagedList
from app.client.type_registry import DeclarationTypeRegistry
from app.config import settings
from app.errors import TransientNetworkError
from app.schemas import CustomerResponse, DeclarationStatus

logger = logging.getLogger(__name__)

# declaration type -> months (1-12)
Schedule = Dict[str, Iterable[int]]


@dataclass
class DeclarationStats:
    total_customers: int
    total_declarations: int
    completed: int
    pending: int


def _log_notifier(message: str) -> None:
    logger.warning(message)


class SyncController:
    def __init__(
        self,
        client: TrackerClient,
        notifier: Optional[Callable[[str], None]] = None,
        registry: Optional[DeclarationTypeRegistry] = None,
        customer_page_size: Optional[int] = None,
        declaration_page_size: Optional[int] = None,
    ):
        self.client = client
        self.notifier = notifier or _log_notifier
        self.registry = registry
        self.last_error: Optional[str] = None
        self.customer_count: Optional[int] = None

        self.customers = PagedList(
            lambda filters, limit, cursor: client.list_customers(limit, cursor),
            customer_page_size or settings.CUSTOMER_PAGE_SIZE,
            name="customers",
            on_error=self._report,
        )
        self.declarations = PagedList(
            client.list_declarations,
            declaration_page_size or settings.DECLARATION_PAGE_SIZE,
            name="declarations",
            on_error=self._report,
        )
        # ids with a write outstanding
        self._mutating: set = set()

    def _report(self, message: str) -> None:
        self.last_error = message
        self.notifier(message)

    # ── loading ──────────────────────────────────────────────────────────
    def start(self) -> None:
        self.customers.reload()
        self.declarations.reload()
        self.refresh_customer_count()

    def set_filters(self, **filters) -> bool:
        return self.declarations.reload(filters)

    def load_more_customers(self) -> bool:
        return self.customers.load_more()

    def load_more_declarations(self) -> bool:
        return self.declarations.load_more()

    def refresh_customer_count(self) -> Optional[int]:
        try:
            self.customer_count = self.client.count_customers()
        except TransientNetworkError as exc:
            self._report(f"Could not count customers: {exc}")
        return self.customer_count

    def sync_declaration_types(self) -> List[str]:
        if self.registry is None:
            return []
        try:
            observed = self.client.list_declaration_types()
        except TransientNetworkError as exc:
            self._report(f"Could not load declaration types: {exc}")
            return self.registry.types()
        return self.registry.refresh(observed)

    # ── optimistic edits ─────────────────────────────────────────────────
    def change_status(self, declaration_id: str, status: str) -> bool:
        status = DeclarationStatus(status)

        def apply(item):
            if status is DeclarationStatus.COMPLETED:
                # reuse an existing timestamp, else stamp now; the server stores the same value
                completed_at = item.completed_at if item.status == DeclarationStatus.COMPLETED.value else None
                completed_at = completed_at or datetime.now(timezone.utc).replace(tzinfo=None)
            else:
                completed_at = None
            updated = item.model_copy(update={"status": status.value, "completed_at": completed_at})
            return updated, {"status": status.value, "completed_at": completed_at, "note": item.note}

        return self._optimistic(declaration_id, apply)

    def save_note(self, declaration_id: str, note: str) -> bool:
        def apply(item):
            updated = item.model_copy(update={"note": note})
            return updated, {"status": item.status, "completed_at": item.completed_at, "note": note}

        return self._optimistic(declaration_id, apply)

    def _optimistic(self, declaration_id: str, apply) -> bool:
        if declaration_id in self._mutating:
            self._report(f"Declaration {declaration_id} already has a change in progress")
            return False
        snapshot = self.declarations.find(declaration_id)
        if snapshot is None:
            self._report(f"Declaration {declaration_id} is not loaded")
            return False

        updated, payload = apply(snapshot)
        self.declarations.replace(declaration_id, updated)
        self._mutating.add(declaration_id)
        try:
            self.client.update_declaration(declaration_id, **payload)
        except TransientNetworkError as exc:
            self.declarations.replace(declaration_id, snapshot)
            self._report(f"Could not update declaration: {exc}")
            return False
        finally:
            self._mutating.discard(declaration_id)
        return True

    # ── other writes ─────────────────────────────────────────────────────
    def delete_declaration(self, declaration_id: str) -> bool:
        try:
            self.client.delete_declaration(declaration_id)
        except TransientNetworkError as exc:
            self._report(f"Could not delete declaration: {exc}")
            return False
        self.declarations.remove(declaration_id)
        return True

    def _create_schedule(self, customer_id: str, schedule: Schedule, year: int) -> int:
        created = 0
        for type_name, months in schedule.items():
            for month in sorted(set(months)):
                self.client.create_declaration(customer_id, type_name, month, year)
                created += 1
        return created

    def register_customer(
        self,
        name: str,
        tax_no: str,
        ledger_type: str,
        schedule: Schedule,
        year: Optional[int] = None,
    ) -> Optional[str]:
        """Create a customer and one declaration per scheduled (type, month)."""
        year = year or datetime.now().year
        customer_id = None
        try:
            customer_id = self.client.create_customer(name, tax_no, ledger_type)
            created = self._create_schedule(customer_id, schedule, year)
            logger.info("Registered customer %s with %d declarations", customer_id, created)
        except TransientNetworkError as exc:
            self._report(f"Could not register customer: {exc}")
            customer_id = None
        self.customers.reload()
        self.declarations.reload()
        self.refresh_customer_count()
        return customer_id

    def replace_customer_declarations(self, customer_id: str, schedule: Schedule, year: Optional[int] = None) -> bool:
        """Drop the customer's loaded declarations and recreate them from ``schedule``."""
        year = year or datetime.now().year
        held = [d.id for d in self.declarations.items if d.customer_id == customer_id]
        ok = True
        try:
            for declaration_id in held:
                self.client.delete_declaration(declaration_id)
            self._create_schedule(customer_id, schedule, year)
        except TransientNetworkError as exc:
            self._report(f"Could not update declarations: {exc}")
            ok = False
        self.declarations.reload()
        return ok

    def delete_customer(self, customer_id: str) -> bool:
        try:
            self.client.delete_customer(customer_id)
        except TransientNetworkError as exc:
            self._report(f"Could not delete customer: {exc}")
            return False
        self.customers.reload()
        self.declarations.reload()
        self.refresh_customer_count()
        return True

    # ── views ────────────────────────────────────────────────────────────
    def search_customers(self, text: str) -> List[CustomerResponse]:
        needle = (text or "").strip().lower()
        if not needle:
            return list(self.customers.items)
        return [
            c for c in self.customers.items
            if needle in c.name.lower() or needle in c.tax_no.lower()
        ]

    def stats(self) -> DeclarationStats:
        items = self.declarations.items
        completed = sum(1 for d in items if d.status == DeclarationStatus.COMPLETED.value)
        return DeclarationStats(
            total_customers=self.customer_count if self.customer_count is not None else len(self.customers.items),
            total_declarations=len(items),
            completed=completed,
            pending=len(items) - completed,
        )
