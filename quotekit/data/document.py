from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from quotekit.core.currency import parse_decimal, sum_money
from quotekit.core.errors import DocumentValidationError

HUNDRED = Decimal("100")


class DocumentKind(str, Enum):
	QUOTATION = "quotation"
	INVOICE = "invoice"

	@property
	def title(self) -> str:
		return "TAX INVOICE" if self is DocumentKind.INVOICE else "QUOTATION"


def _num(value: Any, label: str) -> Decimal:
	try:
		return parse_decimal(value)
	except ValueError:
		raise DocumentValidationError([f"{label} is not a number: {value!r}"]) from None


@dataclass(frozen=True)
class LineItem:
	"""One row of the table: quantity x unit price of a described good or service."""

	description: str
	quantity: Decimal = Decimal("0")
	unit_price: Decimal = Decimal("0")
	code: Optional[str] = None
	unit: Optional[str] = None

	def __post_init__(self) -> None:
		object.__setattr__(self, "quantity", _num(self.quantity, "quantity"))
		object.__setattr__(self, "unit_price", _num(self.unit_price, "unit price"))

	@property
	def subtotal(self) -> Decimal:
		return self.quantity * self.unit_price

	def tax(self, rate: Decimal) -> Decimal:
		return self.subtotal * Decimal(rate) / HUNDRED

	def total(self, rate: Decimal) -> Decimal:
		return self.subtotal + self.tax(rate)


@dataclass(frozen=True)
class DocumentTotals:
	subtotal: Decimal
	tax_rate: Decimal
	tax_amount: Decimal
	grand_total: Decimal

	@classmethod
	def from_items(cls, items: Sequence[LineItem], tax_rate: Decimal) -> "DocumentTotals":
		rate = Decimal(tax_rate)
		subtotal = sum_money(item.subtotal for item in items)
		tax_amount = subtotal * rate / HUNDRED
		return cls(subtotal=subtotal, tax_rate=rate, tax_amount=tax_amount, grand_total=subtotal + tax_amount)


@dataclass(frozen=True)
class CompanyProfile:
	name: str
	tagline: str = ""
	address: str = ""
	phone: str = ""
	email: str = ""
	website: str = ""
	gstin: str = ""
	bank_details: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Counterparty:
	name: str
	address: str = ""
	phone: str = ""
	email: str = ""
	gstin: str = ""
	place_of_supply: str = ""


@dataclass(frozen=True)
class DocumentMeta:
	number: str
	issue_date: date
	due_date: Optional[date] = None
	subject: str = ""
	order_number: str = ""
	order_date: Optional[date] = None
	challan_number: str = ""
	challan_date: Optional[date] = None
	eway_lr_number: str = ""
	reverse_charge: bool = False


@dataclass(frozen=True)
class BandImages:
	"""Already-fetched image bytes for the header, footer and signature bands."""

	header: Optional[bytes] = None
	footer: Optional[bytes] = None
	signature: Optional[bytes] = None


@dataclass(frozen=True)
class DocumentModel:
	kind: DocumentKind
	company: CompanyProfile
	meta: DocumentMeta
	counterparty: Counterparty
	items: Tuple[LineItem, ...] = ()
	tax_rate: Decimal = Decimal("0")
	terms: Tuple[str, ...] = ()
	intro: str = ""
	signatory: Tuple[str, ...] = ("Authorised Signatory",)
	images: BandImages = field(default_factory=BandImages)

	def __post_init__(self) -> None:
		object.__setattr__(self, "kind", DocumentKind(self.kind))
		object.__setattr__(self, "items", tuple(self.items))
		object.__setattr__(self, "terms", tuple(self.terms))
		object.__setattr__(self, "signatory", tuple(self.signatory))
		object.__setattr__(self, "tax_rate", _num(self.tax_rate, "tax rate"))

	@property
	def totals(self) -> DocumentTotals:
		return DocumentTotals.from_items(self.items, self.tax_rate)

	def with_images(self, images: BandImages) -> "DocumentModel":
		return replace(self, images=images)

	def to_dict(self) -> Dict[str, Any]:
		"""JSON-friendly dict; images are not serialized (they come from settings)."""
		return {
			"kind": self.kind.value,
			"company": {**_plain(self.company), "bank_details": list(self.company.bank_details)},
			"meta": _plain(self.meta),
			"counterparty": _plain(self.counterparty),
			"items": [_plain(it) for it in self.items],
			"tax_rate": str(self.tax_rate),
			"terms": list(self.terms),
			"intro": self.intro,
			"signatory": list(self.signatory),
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "DocumentModel":
		try:
			company = dict(data["company"])
			company["bank_details"] = tuple(company.get("bank_details") or ())
			meta = dict(data["meta"])
			for key in ("issue_date", "due_date", "order_date", "challan_date"):
				if meta.get(key):
					meta[key] = date.fromisoformat(str(meta[key]))
			return cls(
				kind=DocumentKind(data.get("kind", DocumentKind.QUOTATION.value)),
				company=CompanyProfile(**company),
				meta=DocumentMeta(**meta),
				counterparty=Counterparty(**data["counterparty"]),
				items=tuple(LineItem(**it) for it in data.get("items", [])),
				tax_rate=data.get("tax_rate", "0"),
				terms=tuple(data.get("terms", ())),
				intro=data.get("intro", ""),
				signatory=tuple(data.get("signatory", ("Authorised Signatory",))),
			)
		except (KeyError, TypeError, ValueError) as e:
			if isinstance(e, DocumentValidationError):
				raise
			raise DocumentValidationError([f"malformed document data: {e}"]) from e


def _plain(obj: Any) -> Dict[str, Any]:
	out: Dict[str, Any] = {}
	for f in fields(obj):
		v = getattr(obj, f.name)
		if isinstance(v, Decimal):
			v = str(v)
		elif isinstance(v, date):
			v = v.isoformat()
		out[f.name] = v
	return out


def validate_document(doc: DocumentModel) -> None:
	"""Raise DocumentValidationError listing every problem that blocks layout."""
	problems: List[str] = []
	if not (doc.meta.number or "").strip():
		problems.append("document number is required")
	if not isinstance(doc.meta.issue_date, date):
		problems.append("issue date is required")
	if not (doc.company.name or "").strip():
		problems.append("company name is required")
	if not (doc.counterparty.name or "").strip():
		problems.append("customer name is required")
	if doc.tax_rate < 0:
		problems.append("tax rate cannot be negative")
	for i, item in enumerate(doc.items, 1):
		if not (item.description or "").strip():
			problems.append(f"item {i}: description is required")
		if item.quantity < 0:
			problems.append(f"item {i}: quantity cannot be negative")
		if item.unit_price < 0:
			problems.append(f"item {i}: unit price cannot be negative")
	if problems:
		raise DocumentValidationError(problems)


@dataclass
class DraftItem:
	description: str = ""
	quantity: Decimal = Decimal("1")
	unit_price: Decimal = Decimal("0")
	code: Optional[str] = None
	unit: Optional[str] = None

	@property
	def subtotal(self) -> Decimal:
		return self.quantity * self.unit_price


@dataclass
class DocumentDraft:
	"""Editable counterpart of DocumentModel.

	Fields change through typed setters; totals are properties so nothing derived goes stale.
	"""

	kind: DocumentKind
	company: CompanyProfile
	number: str = ""
	issue_date: date = field(default_factory=date.today)
	due_date: Optional[date] = None
	subject: str = ""
	counterparty: Counterparty = field(default_factory=lambda: Counterparty(name=""))
	tax_rate: Decimal = Decimal("0")
	terms: List[str] = field(default_factory=list)
	intro: str = ""
	signatory: Tuple[str, ...] = ("Authorised Signatory",)
	items: List[DraftItem] = field(default_factory=list)

	def add_item(self, description: str = "", quantity: Any = 1, unit_price: Any = 0, code: Optional[str] = None, unit: Optional[str] = None) -> int:
		"""Append a row and return its index."""
		self.items.append(DraftItem(description, _num(quantity, "quantity"), _num(unit_price, "unit price"), code, unit))
		return len(self.items) - 1

	def remove_item(self, index: int) -> None:
		del self.items[index]

	def set_description(self, index: int, text: str) -> None:
		self.items[index].description = text

	def set_quantity(self, index: int, value: Any) -> None:
		self.items[index].quantity = _num(value, "quantity")

	def set_unit_price(self, index: int, value: Any) -> None:
		self.items[index].unit_price = _num(value, "unit price")

	def set_code(self, index: int, value: Optional[str]) -> None:
		self.items[index].code = value or None

	def set_tax_rate(self, value: Any) -> None:
		self.tax_rate = _num(value, "tax rate")

	def set_counterparty(self, counterparty: Counterparty) -> None:
		self.counterparty = counterparty

	@property
	def totals(self) -> DocumentTotals:
		return DocumentTotals.from_items(self._line_items(), self.tax_rate)

	def _line_items(self) -> Tuple[LineItem, ...]:
		return tuple(LineItem(it.description, it.quantity, it.unit_price, it.code, it.unit) for it in self.items)

	def to_model(self, images: Optional[BandImages] = None) -> DocumentModel:
		return DocumentModel(
			kind=self.kind,
			company=self.company,
			meta=DocumentMeta(number=self.number, issue_date=self.issue_date, due_date=self.due_date, subject=self.subject),
			counterparty=self.counterparty,
			items=self._line_items(),
			tax_rate=self.tax_rate,
			terms=tuple(self.terms),
			intro=self.intro,
			signatory=self.signatory,
			images=images or BandImages(),
		)
