"""
Customer API endpoints.

POST   /api/customers         — create customer
GET    /api/customers         — cursor-paginated list (by name)
GET    /api/customers/count   — total customers
DELETE /api/customers/{id}    — delete customer and its declarations
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.schemas import (
    CountResponse,
    CreatedResponse,
    CustomerCreate,
    CustomerPage,
    DeletedResponse,
)
from app.services import mutations, queries

logger = logging.getLogger(__name__)
router = APIRouter()


# ── POST /api/customers ──────────────────────────────────────────────────
@router.post("/customers", response_model=CreatedResponse, status_code=201)
def create_customer(req: CustomerCreate, db: Session = Depends(get_db)):
    customer_id = mutations.create_customer(db, req.name, req.tax_no, req.ledger_type)
    return CreatedResponse(id=customer_id)


# ── GET /api/customers ───────────────────────────────────────────────────
@router.get("/customers", response_model=CustomerPage)
def list_customers(
    limit: int = Query(settings.CUSTOMER_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    lastVisible: Optional[str] = None,
    db: Session = Depends(get_db),
):
    page = queries.fetch_customers_page(db, limit, lastVisible)
    logger.info("Found %d customers", len(page.customers))
    return page


# ── GET /api/customers/count ─────────────────────────────────────────────
@router.get("/customers/count", response_model=CountResponse)
def count_customers(db: Session = Depends(get_db)):
    return CountResponse(count=queries.count_customers(db))


# ── DELETE /api/customers/{customer_id} ──────────────────────────────────
@router.delete("/customers/{customer_id}", response_model=DeletedResponse)
def delete_customer(customer_id: str, db: Session = Depends(get_db)):
    deleted, removed = mutations.delete_customer(db, customer_id)
    return DeletedResponse(deleted=deleted, declarations_deleted=removed)
