from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from quotekit.core.settings import Settings
from quotekit.data.document import (
	BandImages,
	CompanyProfile,
	Counterparty,
	DocumentKind,
	DocumentMeta,
	DocumentModel,
	LineItem,
)

# Redacted demo data for samples and tests.

SAMPLE_COMPANY = CompanyProfile(
	name="Sample Engineering Works",
	tagline="Electrical contracting and supplies",
	address="(Street)\n(City) - 400001",
	phone="(redacted)",
	email="sales@example.com",
	website="www.example.com",
	gstin="27AAAAA0000A1Z5",
	bank_details=(
		"Bank Name: Example Bank",
		"Branch Name: Main Branch",
		"Bank Account Number: 000000000000",
		"Bank Branch IFSC: EXMP0000001",
	),
)

SAMPLE_CUSTOMER = Counterparty(
	name="(Customer Name)",
	address="(Street)\n(City)",
	phone="(redacted)",
	gstin="27BBBBB1111B1Z5",
	place_of_supply="Maharashtra",
)

_DESCRIPTIONS = (
	"Supply of 4 core 16 sq.mm armoured copper cable",
	"Installation of distribution board with MCBs",
	"Earthing pit with copper plate and charcoal",
	"LED panel light 2x2 ft, 36 W",
	"Cable tray 300 mm perforated, hot dip galvanised",
)


def sample_items(count: int = 5, description_lines: int = 1):
	"""`count` deterministic line items; description_lines > 1 repeats the text to force wrapping."""
	items = []
	for i in range(count):
		text = _DESCRIPTIONS[i % len(_DESCRIPTIONS)]
		if description_lines > 1:
			text = "\n".join([text] * description_lines)
		items.append(
			LineItem(
				description=text,
				quantity=(i % 4) + 1,
				unit_price=f"{(i + 1) * 1250}.50",
				code=f"85{44 + i % 5:02d}",
				unit="Nos",
			)
		)
	return tuple(items)


def sample_document(
	kind: DocumentKind = DocumentKind.QUOTATION,
	items: Optional[int] = 5,
	settings: Optional[Settings] = None,
	images: Optional[BandImages] = None,
) -> DocumentModel:
	"""A complete document; company and terms come from settings when given."""
	kind = DocumentKind(kind)
	issue = date(2025, 8, 9)
	company = settings.company_profile() if settings else SAMPLE_COMPANY
	if settings:
		terms = tuple(settings.terms_for(kind))
		intro = settings.quotation_intro if kind is DocumentKind.QUOTATION else ""
		signatory = (settings.signatory_title,)
		rate = settings.default_tax_rate
	else:
		defaults = Settings()
		terms = tuple(defaults.terms_for(kind))
		intro = defaults.quotation_intro if kind is DocumentKind.QUOTATION else ""
		signatory = ("Authorised Signatory",)
		rate = 18
	number = "QT-0001" if kind is DocumentKind.QUOTATION else "INV-0001"
	meta = DocumentMeta(
		number=number,
		issue_date=issue,
		due_date=issue + timedelta(days=30),
		subject="Electrical works for the new office" if kind is DocumentKind.QUOTATION else "",
		order_number="PO-778" if kind is DocumentKind.INVOICE else "",
		order_date=issue - timedelta(days=7) if kind is DocumentKind.INVOICE else None,
	)
	return DocumentModel(
		kind=kind,
		company=company,
		meta=meta,
		counterparty=SAMPLE_CUSTOMER,
		items=sample_items(items or 0),
		tax_rate=rate,
		terms=terms,
		intro=intro,
		signatory=signatory,
		images=images or BandImages(),
	)
