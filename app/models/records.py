"""
SQLAlchemy models for customers and their periodic declarations.
"""
from sqlalchemy import Column, DateTime, Integer, String, Text

from app.database import Base


class CustomerModel(Base):
    """Müşteri"""
    __tablename__ = "customers"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    tax_no = Column(String, nullable=False)
    ledger_type = Column(String, nullable=False, index=True)  # İşletme, Bilanço, Basit Usul
    created_at = Column(DateTime, nullable=False)


class DeclarationModel(Base):
    """Beyanname"""
    __tablename__ = "declarations"

    id = Column(String, primary_key=True)
    customer_id = Column(String, nullable=False, index=True)  # no FK: cascades are done by hand
    type = Column(String, nullable=False, index=True)
    month = Column(Integer, nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)

    status = Column(String, nullable=False, default="Pending")  # Pending, Completed
    completed_at = Column(DateTime)
    note = Column(Text, nullable=False, default="")

    # snapshot of the customer's ledger_type at creation time
    ledger_type = Column(String, nullable=False, index=True)

    # nullable so legacy rows can be found by the maintenance checks
    created_at = Column(DateTime, index=True)
