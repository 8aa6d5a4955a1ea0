from __future__ import annotations

from datetime import date
from typing import Optional, List

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy.orm import relationship
from sqlalchemy import event


class Customer(SQLModel, table=True):
	id: Optional[int] = Field(default=None, primary_key=True)
	name: str = Field(index=True)
	address: Optional[str] = None
	phone: Optional[str] = None
	email: Optional[str] = None
	gstin: Optional[str] = None

	documents: List["Document"] = Relationship(sa_relationship=relationship("Document", back_populates="customer"))


class Document(SQLModel, table=True):
	id: Optional[int] = Field(default=None, primary_key=True)
	# "quotation" or "invoice"
	kind: str = Field(index=True)
	number: str = Field(
		index=True,
		sa_column_kwargs={"unique": True},
	)
	issue_date: date
	due_date: Optional[date] = None
	subject: Optional[str] = None
	customer_id: int = Field(foreign_key="customer.id", index=True)
	# Decimal values are stored as strings so no precision is lost
	tax_rate: str = "0"
	subtotal: str = "0"
	tax_amount: str = "0"
	total: str = "0"
	intro: Optional[str] = None
	# Terms lines joined by newlines
	terms: Optional[str] = None

	customer: Optional["Customer"] = Relationship(sa_relationship=relationship("Customer", back_populates="documents"))
	items: List["DocumentItem"] = Relationship(
		sa_relationship=relationship(
			"DocumentItem",
			back_populates="document",
			cascade="all, delete-orphan",
			order_by="DocumentItem.position",
		)
	)


class DocumentItem(SQLModel, table=True):
	id: Optional[int] = Field(default=None, primary_key=True)
	document_id: int = Field(foreign_key="document.id", index=True)
	position: int = 0
	description: str
	code: Optional[str] = None
	unit: Optional[str] = None
	quantity: str = "0"
	unit_price: str = "0"
	# Stored amount = quantity * unit_price (computed on insert/update)
	amount: str = "0"

	document: Optional["Document"] = Relationship(sa_relationship=relationship("Document", back_populates="items"))


@event.listens_for(DocumentItem, "before_insert")
@event.listens_for(DocumentItem, "before_update")
def _compute_item_amount(mapper, connection, target: DocumentItem):  # type: ignore[no-redef]
	from quotekit.core.currency import to_decimal

	target.amount = str(to_decimal(target.quantity) * to_decimal(target.unit_price))
