"""
Declaration query engine: filtered, cursor-paginated reads.

Pagination is keyset based: the cursor is the id of the last row of the
previous page and the scan resumes strictly after that row's
(ordering key, id) pair. A cursor that no longer resolves never fails the
request; the page restarts from the top and the client dedupes by id.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from app.config import settings
from app.models.records import CustomerModel, DeclarationModel
from app.schemas import (
    DEFAULT_DECLARATION_TYPES,
    CustomerPage,
    CustomerResponse,
    DeclarationPage,
    DeclarationResponse,
)

logger = logging.getLogger(__name__)


@dataclass
class DeclarationFilters:
    """Equality filters for the declaration list. Empty values are ignored."""
    month: Optional[int] = None
    year: Optional[int] = None
    type: Optional[str] = None
    status: Optional[str] = None
    ledger: Optional[str] = None

    def active(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v not in (None, "")}


# Filter name -> stored column. `ledger` hits the denormalized copy, not customers.
_FILTER_COLUMNS = {
    "month": DeclarationModel.month,
    "year": DeclarationModel.year,
    "type": DeclarationModel.type,
    "status": DeclarationModel.status,
    "ledger": DeclarationModel.ledger_type,
}


def apply_filters(query: Query, filters: DeclarationFilters) -> Query:
    for name, value in filters.active().items():
        query = query.filter(_FILTER_COLUMNS[name] == value)
    return query


def _resume_declarations(db: Session, query: Query, last_visible: Optional[str]) -> Query:
    if not last_visible:
        return query

    cursor = db.query(DeclarationModel).filter(DeclarationModel.id == last_visible).first()
    if cursor is None:
        logger.warning("Cursor declaration %s not found, serving first page", last_visible)
        return query
    if not isinstance(cursor.created_at, datetime):
        logger.warning(
            "Cursor declaration %s has no valid created_at, serving first page", last_visible
        )
        return query

    logger.debug("Resuming after %s (%s)", cursor.id, cursor.created_at.isoformat())
    return query.filter(
        or_(
            DeclarationModel.created_at < cursor.created_at,
            and_(
                DeclarationModel.created_at == cursor.created_at,
                DeclarationModel.id < cursor.id,
            ),
        )
    )


def resolve_customer_names(db: Session, customer_ids: Iterable[str]) -> Dict[str, str]:
    """Map customer ids to names, looking them up in store-sized chunks.

    Ids with no customer map to the unknown-customer placeholder.
    """
    unique_ids = list(dict.fromkeys(cid for cid in customer_ids if cid))
    names: Dict[str, str] = {}
    chunk = settings.CUSTOMER_LOOKUP_CHUNK
    for start in range(0, len(unique_ids), chunk):
        batch = unique_ids[start:start + chunk]
        rows = (
            db.query(CustomerModel.id, CustomerModel.name)
            .filter(CustomerModel.id.in_(batch))
            .all()
        )
        names.update({row.id: row.name for row in rows})

    missing = [cid for cid in unique_ids if cid not in names]
    if missing:
        logger.info("%d declarations reference missing customers", len(missing))
    for cid in missing:
        names[cid] = settings.UNKNOWN_CUSTOMER_NAME
    return names


def fetch_declarations_page(
    db: Session,
    filters: DeclarationFilters,
    limit: int,
    last_visible: Optional[str] = None,
) -> DeclarationPage:
    """Return up to ``limit`` declarations, newest first, plus the next cursor."""
    logger.info("Declarations page: filters=%s limit=%d cursor=%s", filters.active(), limit, last_visible)

    query = db.query(DeclarationModel).filter(DeclarationModel.created_at.isnot(None))
    query = apply_filters(query, filters)
    query = _resume_declarations(db, query, last_visible)
    rows = (
        query.order_by(DeclarationModel.created_at.desc(), DeclarationModel.id.desc())
        .limit(limit)
        .all()
    )
    if not rows:
        return DeclarationPage(declarations=[], last_visible=None)

    names = resolve_customer_names(db, (row.customer_id for row in rows))
    declarations = [
        DeclarationResponse(
            id=row.id,
            customer_id=row.customer_id,
            customer_name=names.get(row.customer_id, settings.UNKNOWN_CUSTOMER_NAME),
            type=row.type,
            month=row.month,
            year=row.year,
            status=row.status,
            completed_at=row.completed_at,
            note=row.note or "",
            ledger_type=row.ledger_type,
            created_at=row.created_at,
        )
        for row in rows
    ]
    logger.info("Returning %d declarations, next cursor %s", len(declarations), rows[-1].id)
    return DeclarationPage(declarations=declarations, last_visible=rows[-1].id)


def fetch_customers_page(
    db: Session,
    limit: int,
    last_visible: Optional[str] = None,
) -> CustomerPage:
    """Customers ordered by name, same cursor contract as declarations."""
    query = db.query(CustomerModel)

    if last_visible:
        cursor = db.query(CustomerModel).filter(CustomerModel.id == last_visible).first()
        if cursor is None:
            logger.warning("Cursor customer %s not found, serving first page", last_visible)
        else:
            query = query.filter(
                or_(
                    CustomerModel.name > cursor.name,
                    and_(CustomerModel.name == cursor.name, CustomerModel.id > cursor.id),
                )
            )

    rows = query.order_by(CustomerModel.name, CustomerModel.id).limit(limit).all()
    return CustomerPage(
        customers=[
            CustomerResponse(
                id=row.id,
                name=row.name,
                tax_no=row.tax_no,
                ledger_type=row.ledger_type,
                created_at=row.created_at,
            )
            for row in rows
        ],
        last_visible=rows[-1].id if rows else None,
    )


def count_customers(db: Session) -> int:
    return db.query(CustomerModel).count()


def distinct_declaration_types(db: Session) -> List[str]:
    rows = db.query(DeclarationModel.type).distinct().all()
    return sorted({row.type for row in rows if row.type})


def known_declaration_types(db: Session) -> List[str]:
    """Defaults plus every type already present in the store."""
    return sorted(set(DEFAULT_DECLARATION_TYPES) | set(distinct_declaration_types(db)))
