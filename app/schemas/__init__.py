"""
Pydantic v2 contracts for the declaration tracker API.
"""
from app.schemas.records import (  # noqa: F401
    DEFAULT_DECLARATION_TYPES,
    LEDGER_TYPES,
    CountResponse,
    CreatedResponse,
    CustomerCreate,
    CustomerPage,
    CustomerResponse,
    DeclarationCreate,
    DeclarationPage,
    DeclarationResponse,
    DeclarationStatus,
    DeclarationTypesResponse,
    DeclarationUpdate,
    DeletedResponse,
    UpdatedResponse,
)
