from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from quotekit.core.errors import DocumentValidationError
from quotekit.core.numbering import next_number, peek_next_number
from quotekit.core.settings import Settings
from quotekit.data.db import get_session
from quotekit.data.document import Counterparty, DocumentDraft, DocumentKind
from quotekit.data.repo import (
    delete_document,
    get_or_create_customer,
    list_documents,
    load_document,
    save_draft,
)


def _draft(kind=DocumentKind.QUOTATION, number="", customer="Test Customer", issue=date(2025, 8, 9)) -> DocumentDraft:
    settings = Settings(business_name="Acme Fabricators")
    draft = DocumentDraft(kind=kind, company=settings.company_profile(), number=number, issue_date=issue)
    draft.set_counterparty(Counterparty(name=customer, phone="1234567890", address="Line 1\nLine 2"))
    draft.set_tax_rate("18")
    draft.add_item("Panel", quantity=2, unit_price="1000")
    draft.add_item("Wiring", quantity="1.5", unit_price="250.50", code="8544")
    return draft


def test_save_assigns_sequential_numbers(temp_db) -> None:
    assert save_draft(_draft()) == "QT-0001"
    assert save_draft(_draft()) == "QT-0002"
    assert save_draft(_draft(DocumentKind.INVOICE)) == "INV-0001"


def test_manual_number_bumps_the_sequence(temp_db) -> None:
    assert save_draft(_draft(number="QT-0010")) == "QT-0010"
    with get_session() as s:
        assert peek_next_number("QT-", s) == "QT-0011"
        # peeking does not consume a number
        assert peek_next_number("QT-", s) == "QT-0011"
    assert save_draft(_draft()) == "QT-0011"


def test_sequence_starts_at_one(temp_db) -> None:
    with get_session() as s:
        assert peek_next_number("QT-", s) == "QT-0001"
        assert next_number("QT-", s) == "QT-0001"
        assert next_number("QT-", s) == "QT-0002"


def test_load_round_trips_items_and_totals(temp_db) -> None:
    draft = _draft()
    number = save_draft(draft)
    assert draft.number == number

    settings = Settings(business_name="Acme Fabricators", signatory_title="Proprietor")
    doc = load_document(number, settings)
    assert doc.kind is DocumentKind.QUOTATION
    assert doc.company.name == "Acme Fabricators"
    assert doc.counterparty.name == "Test Customer"
    assert [it.description for it in doc.items] == ["Panel", "Wiring"]
    assert doc.items[1].quantity == Decimal("1.5")
    assert doc.items[1].unit_price == Decimal("250.50")
    assert doc.items[1].code == "8544"
    assert doc.totals == draft.totals
    assert doc.signatory == ("Proprietor",)


def test_saving_again_replaces_items(temp_db) -> None:
    draft = _draft()
    number = save_draft(draft)
    draft.remove_item(0)
    draft.set_description(0, "Wiring (revised)")
    save_draft(draft)
    doc = load_document(number)
    assert [it.description for it in doc.items] == ["Wiring (revised)"]
    assert len(list_documents()) == 1


def test_number_cannot_switch_kind(temp_db) -> None:
    save_draft(_draft(number="X-1"))
    with pytest.raises(ValueError):
        save_draft(_draft(DocumentKind.INVOICE, number="X-1"))


def test_invalid_draft_is_not_saved(temp_db) -> None:
    draft = _draft(customer="")
    with pytest.raises(DocumentValidationError):
        save_draft(draft)
    assert list_documents() == []


def test_list_filters_by_kind_and_query(temp_db) -> None:
    save_draft(_draft(customer="Alpha Traders", issue=date(2025, 1, 1)))
    save_draft(_draft(customer="Beta Works", issue=date(2025, 2, 1)))
    save_draft(_draft(DocumentKind.INVOICE, customer="Alpha Traders", issue=date(2025, 3, 1)))

    rows = list_documents()
    assert [r["number"] for r in rows] == ["INV-0001", "QT-0002", "QT-0001"]
    assert [r["number"] for r in list_documents(DocumentKind.QUOTATION)] == ["QT-0002", "QT-0001"]
    assert [r["number"] for r in list_documents(query="alpha")] == ["INV-0001", "QT-0001"]
    assert rows[0]["total"] == Decimal("2803.385")


def test_delete_document(temp_db) -> None:
    number = save_draft(_draft())
    delete_document(number)
    with pytest.raises(LookupError):
        load_document(number)
    with pytest.raises(LookupError):
        delete_document(number)


def test_customers_are_reused_case_insensitively(temp_db) -> None:
    first = get_or_create_customer("Alpha Traders")
    second = get_or_create_customer("alpha traders")
    assert first.id == second.id
    with pytest.raises(ValueError):
        get_or_create_customer("  ")
