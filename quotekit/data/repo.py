from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from sqlmodel import select
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from quotekit.core.currency import parse_decimal
from quotekit.core.numbering import bump_sequence_to_at_least, next_number, parse_number
from quotekit.core.settings import Settings
from quotekit.data.db import get_session, session_scope
from quotekit.data.document import (
	Counterparty,
	DocumentDraft,
	DocumentKind,
	DocumentMeta,
	DocumentModel,
	LineItem,
	validate_document,
)
from quotekit.data.models import Customer, Document, DocumentItem

logger = logging.getLogger(__name__)


def get_or_create_customer(
	name: str,
	phone: Optional[str] = None,
	address: Optional[str] = None,
	email: Optional[str] = None,
	gstin: Optional[str] = None,
) -> Customer:
	"""Fetch an existing customer by name/phone (case-insensitive), or create one."""
	normalized_name = (name or "").strip()
	if not normalized_name:
		raise ValueError("Customer name is required")

	with session_scope() as s:
		stmt = select(Customer).where(func.lower(Customer.name) == normalized_name.lower())
		if phone:
			stmt = stmt.where(Customer.phone == phone)
		existing = s.exec(stmt).first()
		if existing:
			return existing

		customer = Customer(name=normalized_name, phone=phone, address=address, email=email, gstin=gstin)
		s.add(customer)
		# Ensure PK is populated before leaving the session
		s.flush()
		s.refresh(customer)
		return customer


def save_draft(draft: DocumentDraft, settings: Optional[Settings] = None) -> str:
	"""
	Persist a draft and return its document number.

	A draft without a number gets the next one from the sequence for its kind.
	Saving a number that already exists replaces that document's contents.
	"""
	settings = settings or Settings()
	prefix = settings.prefix_for(draft.kind)
	# Validate before anything is written
	model = draft.to_model()
	if not draft.number.strip():
		model = replace(model, meta=replace(model.meta, number=prefix))
	validate_document(model)

	cp = draft.counterparty
	customer = get_or_create_customer(cp.name, cp.phone or None, cp.address or None, cp.email or None, cp.gstin or None)
	totals = draft.totals

	with session_scope() as s:
		number = draft.number.strip() or next_number(prefix, s)
		doc = s.exec(select(Document).where(Document.number == number)).first()
		if doc is None:
			doc = Document(number=number, kind=draft.kind.value, issue_date=draft.issue_date, customer_id=customer.id)  # type: ignore[arg-type]
			s.add(doc)
		elif doc.kind != draft.kind.value:
			raise ValueError(f"{number} is already used by a {doc.kind}")
		doc.issue_date = draft.issue_date
		doc.due_date = draft.due_date
		doc.subject = draft.subject or None
		doc.customer_id = customer.id  # type: ignore[assignment]
		doc.tax_rate = str(draft.tax_rate)
		doc.subtotal = str(totals.subtotal)
		doc.tax_amount = str(totals.tax_amount)
		doc.total = str(totals.grand_total)
		doc.intro = draft.intro or None
		doc.terms = "\n".join(draft.terms) or None
		doc.items = [
			DocumentItem(
				position=i,
				description=it.description,
				code=it.code,
				unit=it.unit,
				quantity=str(it.quantity),
				unit_price=str(it.unit_price),
			)
			for i, it in enumerate(draft.items)
		]
		s.flush()

		n = parse_number(prefix, number)
		if n is not None:
			bump_sequence_to_at_least(prefix, n, s)

	draft.number = number
	logger.info("Saved %s %s (%d item(s))", draft.kind.value, number, len(draft.items))
	return number


def _get(s, number: str) -> Document:
	stmt = (
		select(Document)
		.where(Document.number == number)
		.options(selectinload(Document.items), selectinload(Document.customer))  # type: ignore[arg-type]
	)
	doc = s.exec(stmt).first()
	if doc is None:
		raise LookupError(f"No document numbered {number!r}")
	return doc


def load_document(number: str, settings: Optional[Settings] = None) -> DocumentModel:
	"""Rebuild a stored document, with company details and signatory from settings.

	Band images are not attached; see quotekit.core.assets.load_band_images.
	"""
	settings = settings or Settings()
	with get_session() as s:
		doc = _get(s, number)
		cust = doc.customer
		counterparty = Counterparty(
			name=cust.name if cust else "",
			address=(cust.address if cust else None) or "",
			phone=(cust.phone if cust else None) or "",
			email=(cust.email if cust else None) or "",
			gstin=(cust.gstin if cust else None) or "",
		)
		items = tuple(
			LineItem(
				description=it.description,
				quantity=parse_decimal(it.quantity),
				unit_price=parse_decimal(it.unit_price),
				code=it.code,
				unit=it.unit,
			)
			for it in doc.items
		)
		kind = DocumentKind(doc.kind)
		return DocumentModel(
			kind=kind,
			company=settings.company_profile(),
			meta=DocumentMeta(number=doc.number, issue_date=doc.issue_date, due_date=doc.due_date, subject=doc.subject or ""),
			counterparty=counterparty,
			items=items,
			tax_rate=doc.tax_rate,
			terms=tuple(doc.terms.splitlines()) if doc.terms else tuple(settings.terms_for(kind)),
			intro=doc.intro or "",
			signatory=(settings.signatory_title,),
		)


def list_documents(kind: Optional[DocumentKind] = None, query: str = "", limit: int = 200) -> List[Dict[str, Any]]:
	"""List recent documents with customer and totals.

	Returns list of dicts: {number, kind, issue_date, customer_name, total}
	Applies case-insensitive filtering on number and customer name when query provided.
	"""
	q = (query or "").strip().lower()
	with get_session() as s:
		stmt = (
			select(
				Document.number,
				Document.kind,
				Document.issue_date,
				Document.total,
				Customer.name.label("customer_name"),
			)
			.select_from(Document)
			.join(Customer, Customer.id == Document.customer_id, isouter=True)
			.order_by(Document.issue_date.desc(), Document.id.desc())
		)
		if kind is not None:
			stmt = stmt.where(Document.kind == DocumentKind(kind).value)
		if q:
			like = f"%{q}%"
			stmt = stmt.where(
				(func.lower(Document.number).like(like))
				| (func.lower(Customer.name).like(like))
			)
		if limit and isinstance(limit, int):
			stmt = stmt.limit(limit)
		return [
			{
				"number": number,
				"kind": k,
				"issue_date": d,
				"customer_name": cust or "",
				"total": parse_decimal(total),
			}
			for number, k, d, total, cust in s.exec(stmt).all()
		]


def delete_document(number: str) -> None:
	"""Delete a document and its items; LookupError if it does not exist."""
	with session_scope() as s:
		s.delete(_get(s, number))
	logger.info("Deleted document %s", number)
