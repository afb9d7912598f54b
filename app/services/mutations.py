"""
Mutation gateway: validated writes for customers and declarations.

Every operation commits a single document, except customer deletion which
commits the dependent declarations first and the customer second. A failure
between those two commits leaves the customer in place with its declarations
already gone; the delete is not rolled back and has to be repeated. Orphaned
declarations show up under the unknown-customer name and in
``app.maintenance`` orphan reports.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.errors import IntegrityError, ValidationError
from app.models.records import CustomerModel, DeclarationModel
from app.schemas import LEDGER_TYPES, DeclarationStatus

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form the store keeps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _require(**fields) -> None:
    missing = [name for name, value in fields.items() if value is None or value == ""]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _as_int(name: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer") from None


# ── Customers ─────────────────────────────────────────────────────────────
def create_customer(db: Session, name: Optional[str], tax_no: Optional[str], ledger_type: Optional[str]) -> str:
    _require(name=name, tax_no=tax_no, ledger_type=ledger_type)
    if ledger_type not in LEDGER_TYPES:
        raise ValidationError(f"Unknown ledger_type: {ledger_type}")

    customer = CustomerModel(
        id=str(uuid.uuid4()),
        name=name,
        tax_no=tax_no,
        ledger_type=ledger_type,
        created_at=utcnow(),
    )
    db.add(customer)
    db.commit()
    logger.info("Created customer %s (%s)", customer.id, ledger_type)
    return customer.id


def delete_customer(db: Session, customer_id: str) -> Tuple[str, int]:
    """Delete a customer and every declaration that references it."""
    # 1. dependent declarations, one batch
    removed = (
        db.query(DeclarationModel)
        .filter(DeclarationModel.customer_id == customer_id)
        .delete(synchronize_session=False)
    )
    db.commit()

    # 2. the customer itself
    db.query(CustomerModel).filter(CustomerModel.id == customer_id).delete(synchronize_session=False)
    db.commit()
    logger.info("Deleted customer %s and %d declarations", customer_id, removed)
    return customer_id, removed


# ── Declarations ──────────────────────────────────────────────────────────
def resolve_ledger_type(db: Session, customer_id: str, ledger_type: Optional[str]) -> str:
    """Caller-supplied ledger type, else the owning customer's."""
    if ledger_type:
        if ledger_type not in LEDGER_TYPES:
            raise ValidationError(f"Unknown ledger_type: {ledger_type}")
        return ledger_type

    customer = db.query(CustomerModel).filter(CustomerModel.id == customer_id).first()
    if customer is not None and customer.ledger_type:
        return customer.ledger_type

    logger.error("No ledger_type resolvable for customer %s", customer_id)
    raise IntegrityError(f"Could not resolve ledger_type for customer {customer_id}")


def create_declaration(
    db: Session,
    customer_id: Optional[str],
    type: Optional[str],
    month,
    year,
    ledger_type: Optional[str] = None,
) -> str:
    _require(customer_id=customer_id, type=type, month=month, year=year)
    month = _as_int("month", month)
    year = _as_int("year", year)
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")

    declaration = DeclarationModel(
        id=str(uuid.uuid4()),
        customer_id=customer_id,
        type=type,
        month=month,
        year=year,
        status=DeclarationStatus.PENDING.value,
        completed_at=None,
        note="",
        ledger_type=resolve_ledger_type(db, customer_id, ledger_type),
        created_at=utcnow(),
    )
    db.add(declaration)
    db.commit()
    logger.info("Created declaration %s: %s %02d/%d for %s", declaration.id, type, month, year, customer_id)
    return declaration.id


def update_declaration(
    db: Session,
    declaration_id: str,
    status: Optional[str],
    completed_at: Optional[datetime] = None,
    note: Optional[str] = "",
) -> str:
    """Write status, completed_at and note together."""
    _require(status=status)
    try:
        status = DeclarationStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown status: {status}") from None

    declaration = db.query(DeclarationModel).filter(DeclarationModel.id == declaration_id).first()
    if not declaration:
        raise HTTPException(status_code=404, detail="Declaration not found")

    if completed_at is not None:
        completed_at = _to_naive_utc(completed_at)
    elif status is DeclarationStatus.COMPLETED:
        completed_at = utcnow()

    declaration.status = status.value
    declaration.completed_at = completed_at
    declaration.note = note or ""
    db.commit()
    logger.info("Updated declaration %s -> %s", declaration_id, status.value)
    return declaration_id


def delete_declaration(db: Session, declaration_id: str) -> str:
    removed = (
        db.query(DeclarationModel)
        .filter(DeclarationModel.id == declaration_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if not removed:
        logger.info("Declaration %s already absent", declaration_id)
    return declaration_id
