from __future__ import annotations

import io
from datetime import date
from pathlib import Path

import pytest
from PIL import Image

from quotekit.data import db
from quotekit.data.document import (
    BandImages,
    CompanyProfile,
    Counterparty,
    DocumentKind,
    DocumentMeta,
    DocumentModel,
    LineItem,
)

COMPANY = CompanyProfile(
    name="Acme Fabricators",
    tagline="Sheet metal and panels",
    address="12 Industrial Estate\nPune 411001",
    phone="+91 20 5555 0100",
    email="office@acme.example",
    gstin="27ABCDE1234F1Z5",
    bank_details=("Bank Name: Example Bank", "Bank Branch IFSC: EXMP0000001"),
)

CUSTOMER = Counterparty(name="Test Customer", address="Line 1\nLine 2", phone="1234567890")


def make_items(count: int, description: str = "Item"):
    return tuple(LineItem(f"{description} {i + 1}", quantity=1, unit_price="100") for i in range(count))


def make_document(
    kind: DocumentKind = DocumentKind.QUOTATION,
    items=(),
    number: str = "QT-0001",
    tax_rate="18",
    images: BandImages = BandImages(),
) -> DocumentModel:
    return DocumentModel(
        kind=kind,
        company=COMPANY,
        meta=DocumentMeta(number=number, issue_date=date(2025, 8, 9), subject="Panel work"),
        counterparty=CUSTOMER,
        items=tuple(items),
        tax_rate=tax_rate,
        terms=("Completion: 90 Days", "Transport: NA"),
        intro="Please find our quote below.",
        images=images,
    )


def png_bytes(size=(120, 30), color="#19418B") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def temp_db(tmp_path: Path):
    """Point the engine at a fresh SQLite file with all tables created."""
    db.configure(tmp_path / "test.db")
    db.create_db_and_tables()
    yield tmp_path / "test.db"
    db.configure(None)
