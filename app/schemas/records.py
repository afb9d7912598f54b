"""
Request / response schemas for customers and declarations.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field


LEDGER_TYPES = ("İşletme", "Bilanço", "Basit Usul")

DEFAULT_DECLARATION_TYPES = (
    "KDV",
    "Muhtasar",
    "Geçici Vergi",
    "Yıllık Gelir",
    "Kurumlar",
    "Ba-Bs",
    "Damga",
    "Diğer",
)


class DeclarationStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

class CustomerCreate(BaseModel):
    """Required fields are checked by the mutation layer so that a missing
    field is reported as 400 rather than a schema error."""
    name: Optional[str] = None
    tax_no: Optional[str] = None
    ledger_type: Optional[str] = None


class CustomerResponse(BaseModel):
    id: str
    name: str
    tax_no: str
    ledger_type: str
    created_at: datetime


class CustomerPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customers: List[CustomerResponse] = Field(default_factory=list)
    last_visible: Optional[str] = Field(default=None, alias="lastVisible")


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

class DeclarationCreate(BaseModel):
    customer_id: Optional[str] = None
    type: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None
    ledger_type: Optional[str] = None


class DeclarationUpdate(BaseModel):
    status: Optional[str] = None
    completed_at: Optional[datetime] = None
    note: Optional[str] = ""


class DeclarationResponse(BaseModel):
    id: str
    customer_id: str
    customer_name: str
    type: str
    month: int
    year: int
    status: str
    completed_at: Optional[datetime] = None
    note: str = ""
    ledger_type: str
    created_at: datetime


class DeclarationPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    declarations: List[DeclarationResponse] = Field(default_factory=list)
    last_visible: Optional[str] = Field(default=None, alias="lastVisible")


class DeclarationTypesResponse(BaseModel):
    types: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Acknowledgements
# ---------------------------------------------------------------------------

class CreatedResponse(BaseModel):
    id: str


class CountResponse(BaseModel):
    count: int


class UpdatedResponse(BaseModel):
    updated: str


class DeletedResponse(BaseModel):
    deleted: str
    declarations_deleted: Optional[int] = None
