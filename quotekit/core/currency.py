from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Iterable


def to_decimal(x: object) -> Decimal:
	"""Best-effort conversion to Decimal via str to avoid binary float artifacts."""
	try:
		d = Decimal(str(x))
	except (InvalidOperation, ValueError, TypeError):
		return Decimal("0")
	return d if d.is_finite() else Decimal("0")


def parse_decimal(x: object) -> Decimal:
	"""Strict variant of to_decimal: raise ValueError instead of defaulting to zero."""
	if isinstance(x, bool) or x is None:
		raise ValueError(f"Not a number: {x!r}")
	try:
		d = Decimal(str(x).strip())
	except (InvalidOperation, ValueError, TypeError):
		raise ValueError(f"Not a number: {x!r}") from None
	if not d.is_finite():
		raise ValueError(f"Not a finite number: {x!r}")
	return d


def round_money_dec(x: float | Decimal) -> Decimal:
	"""Round to 2 decimals (half-up) for display. Stored values keep full precision."""
	d = to_decimal(x)
	return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _group_indian(digits: str) -> str:
	# 1234567 -> 12,34,567
	if len(digits) <= 3:
		return digits
	head, tail = digits[:-3], digits[-3:]
	groups = []
	while len(head) > 2:
		groups.insert(0, head[-2:])
		head = head[:-2]
	if head:
		groups.insert(0, head)
	return ",".join(groups) + "," + tail


def fmt_money(x: float | Decimal, width: Optional[int] = None, grouping: bool = False) -> str:
	"""
	Format monetary value with two decimals. If width is provided, return a right-aligned string.

	grouping=True uses the Indian digit grouping (1,23,456.78) used on grand totals.
	"""
	q = round_money_dec(x)
	s = f"{q:.2f}"
	if grouping:
		sign = "-" if s.startswith("-") else ""
		whole, frac = s.lstrip("-").split(".")
		s = f"{sign}{_group_indian(whole)}.{frac}"
	return s.rjust(width) if isinstance(width, int) and width > 0 else s


def fmt_percent(x: float | Decimal) -> str:
	"""Percent with at most one decimal digit: 18 -> '18', 12.5 -> '12.5'."""
	q = to_decimal(x).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
	s = f"{q:.1f}"
	return s[:-2] if s.endswith(".0") else s


def fmt_qty(qty: float | Decimal) -> str:
	"""Format quantity with up to 3 decimals, no trailing zeros."""
	q = to_decimal(qty).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
	s = f"{q:.3f}".rstrip("0").rstrip(".")
	return s if s and s != "-0" else "0"


def sum_money(values: Iterable[float | Decimal]) -> Decimal:
	"""Accumulate monetary values using Decimal; rounding is left to display."""
	total = Decimal("0")
	for v in values:
		total += to_decimal(v)
	return total
