"""
Declaration API endpoints.

POST   /api/declarations         — create declaration
GET    /api/declarations         — filtered, cursor-paginated list
GET    /api/declarations/types   — known declaration types
PUT    /api/declarations/{id}    — write status / completed_at / note
DELETE /api/declarations/{id}    — delete declaration (idempotent)
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import ValidationError
from app.schemas import (
    CreatedResponse,
    DeclarationCreate,
    DeclarationPage,
    DeclarationTypesResponse,
    DeclarationUpdate,
    DeletedResponse,
    UpdatedResponse,
)
from app.services import mutations, queries

logger = logging.getLogger(__name__)
router = APIRouter()


def _optional_int(name: str, value: Optional[str]) -> Optional[int]:
    """Blank query values mean "no filter"."""
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer") from None


# ── POST /api/declarations ───────────────────────────────────────────────
@router.post("/declarations", response_model=CreatedResponse, status_code=201)
def create_declaration(req: DeclarationCreate, db: Session = Depends(get_db)):
    declaration_id = mutations.create_declaration(
        db,
        customer_id=req.customer_id,
        type=req.type,
        month=req.month,
        year=req.year,
        ledger_type=req.ledger_type,
    )
    return CreatedResponse(id=declaration_id)


# ── GET /api/declarations ────────────────────────────────────────────────
@router.get("/declarations", response_model=DeclarationPage)
def list_declarations(
    limit: int = Query(settings.DECLARATION_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    lastVisible: Optional[str] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    ledger: Optional[str] = None,
    db: Session = Depends(get_db),
):
    filters = queries.DeclarationFilters(
        month=_optional_int("month", month),
        year=_optional_int("year", year),
        type=type,
        status=status,
        ledger=ledger,
    )
    return queries.fetch_declarations_page(db, filters, limit, lastVisible)


# ── GET /api/declarations/types ──────────────────────────────────────────
@router.get("/declarations/types", response_model=DeclarationTypesResponse)
def list_declaration_types(db: Session = Depends(get_db)):
    return DeclarationTypesResponse(types=queries.known_declaration_types(db))


# ── PUT /api/declarations/{declaration_id} ───────────────────────────────
@router.put("/declarations/{declaration_id}", response_model=UpdatedResponse)
def update_declaration(
    declaration_id: str,
    req: DeclarationUpdate,
    db: Session = Depends(get_db),
):
    mutations.update_declaration(
        db,
        declaration_id,
        status=req.status,
        completed_at=req.completed_at,
        note=req.note,
    )
    return UpdatedResponse(updated=declaration_id)


# ── DELETE /api/declarations/{declaration_id} ────────────────────────────
@router.delete(
    "/declarations/{declaration_id}",
    response_model=DeletedResponse,
    response_model_exclude_none=True,
)
def delete_declaration(declaration_id: str, db: Session = Depends(get_db)):
    return DeletedResponse(deleted=mutations.delete_declaration(db, declaration_id))
