"""
Unit tests for the query engine and mutation gateway, against the session directly.
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.config import settings
from app.errors import IntegrityError, ValidationError
from app.models import CustomerModel, DeclarationModel
from app.services import mutations, queries
from app.services.queries import DeclarationFilters


def _declaration(db, declaration_id, created_at, **fields):
    values = dict(
        customer_id="c1", type="KDV", month=1, year=2024,
        status="Pending", note="", ledger_type="İşletme",
    )
    values.update(fields)
    db.add(DeclarationModel(id=declaration_id, created_at=created_at, **values))


class TestFilters:
    def test_active_drops_blank_values(self):
        filters = DeclarationFilters(month=3, year=None, type="", status="Pending", ledger=None)
        assert filters.active() == {"month": 3, "status": "Pending"}

    def test_ledger_uses_denormalized_column(self, db):
        # the customer says Bilanço, the snapshot on the declaration says İşletme
        db.add(CustomerModel(id="c1", name="Acme", tax_no="1", ledger_type="Bilanço",
                             created_at=datetime(2024, 1, 1)))
        _declaration(db, "d1", datetime(2024, 1, 2), ledger_type="İşletme")
        db.commit()

        page = queries.fetch_declarations_page(db, DeclarationFilters(ledger="İşletme"), 10)
        assert [d.id for d in page.declarations] == ["d1"]
        page = queries.fetch_declarations_page(db, DeclarationFilters(ledger="Bilanço"), 10)
        assert page.declarations == []


class TestCustomerNames:
    def test_chunked_lookup(self, db, monkeypatch):
        monkeypatch.setattr(settings, "CUSTOMER_LOOKUP_CHUNK", 2)
        for i in range(5):
            db.add(CustomerModel(id=f"c{i}", name=f"Customer {i}", tax_no=str(i),
                                 ledger_type="İşletme", created_at=datetime(2024, 1, 1)))
        db.commit()

        names = queries.resolve_customer_names(db, [f"c{i}" for i in range(5)] + ["c0", "gone"])
        assert names["c4"] == "Customer 4"
        assert names["gone"] == settings.UNKNOWN_CUSTOMER_NAME
        assert len(names) == 6

    def test_empty(self, db):
        assert queries.resolve_customer_names(db, []) == {}


class TestDeclarationPages:
    def test_exact_multiple_of_page_size(self, db):
        start = datetime(2024, 1, 1)
        for i in range(4):
            _declaration(db, f"d{i}", start + timedelta(minutes=i))
        db.commit()

        first = queries.fetch_declarations_page(db, DeclarationFilters(), 2)
        second = queries.fetch_declarations_page(db, DeclarationFilters(), 2, first.last_visible)
        third = queries.fetch_declarations_page(db, DeclarationFilters(), 2, second.last_visible)
        assert [d.id for d in first.declarations] == ["d3", "d2"]
        assert [d.id for d in second.declarations] == ["d1", "d0"]
        assert third.declarations == []
        assert third.last_visible is None

    def test_rows_without_created_at_are_skipped(self, db):
        _declaration(db, "ok", datetime(2024, 1, 1))
        _declaration(db, "legacy", None)
        db.commit()
        page = queries.fetch_declarations_page(db, DeclarationFilters(), 10)
        assert [d.id for d in page.declarations] == ["ok"]

    def test_known_types_include_defaults(self, db):
        _declaration(db, "d1", datetime(2024, 1, 1), type="Özel")
        db.commit()
        types = queries.known_declaration_types(db)
        assert "Özel" in types and "Muhtasar" in types
        assert queries.distinct_declaration_types(db) == ["Özel"]


class TestMutations:
    def test_create_declaration_copies_ledger(self, db):
        customer_id = mutations.create_customer(db, "Acme", "1234", "Basit Usul")
        declaration_id = mutations.create_declaration(db, customer_id, "KDV", "4", "2024")
        row = db.query(DeclarationModel).filter(DeclarationModel.id == declaration_id).one()
        assert row.ledger_type == "Basit Usul"
        assert (row.month, row.year) == (4, 2024)

    def test_no_ledger_type_is_integrity_error(self, db):
        with pytest.raises(IntegrityError):
            mutations.create_declaration(db, "ghost", "KDV", 1, 2024)

    def test_unknown_explicit_ledger_type_rejected(self, db):
        customer_id = mutations.create_customer(db, "Acme", "1234", "İşletme")
        with pytest.raises(ValidationError):
            mutations.create_declaration(db, customer_id, "KDV", 1, 2024, ledger_type="Kasa")
        assert db.query(DeclarationModel).count() == 0

    def test_non_numeric_year(self, db):
        with pytest.raises(ValidationError):
            mutations.create_declaration(db, "c1", "KDV", 1, "next", ledger_type="İşletme")

    def test_completed_at_is_stored_naive_utc(self, db):
        declaration_id = mutations.create_declaration(db, "c1", "KDV", 1, 2024, ledger_type="İşletme")
        aware = datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=3)))
        mutations.update_declaration(db, declaration_id, "Completed", aware, "")
        row = db.query(DeclarationModel).filter(DeclarationModel.id == declaration_id).one()
        assert row.completed_at == datetime(2024, 3, 1, 9, 0)

    def test_delete_customer_without_declarations(self, db):
        customer_id = mutations.create_customer(db, "Acme", "1234", "İşletme")
        assert mutations.delete_customer(db, customer_id) == (customer_id, 0)
        assert queries.count_customers(db) == 0
