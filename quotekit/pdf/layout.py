from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Tuple

from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.units import mm

from quotekit.core.currency import fmt_money, fmt_percent, fmt_qty
from quotekit.data.document import DocumentKind, LineItem

PAGE_SIZES: Dict[str, Tuple[float, float]] = {"A4": A4, "LETTER": LETTER}

# Colors (brand)
BRAND = "#19418B"
WHITE = "#FFFFFF"
TEXT_COLOR = "#000000"
SHADE = "#C8C8C8"       # table header and total rows
STRIPE = "#F8F8F8"      # every other body row
RULE_COLOR = "#000000"


def page_size(name: str) -> Tuple[float, float]:
    try:
        return PAGE_SIZES[(name or "A4").upper()]
    except KeyError:
        raise ValueError(f"Unsupported page size {name!r}; expected one of {', '.join(PAGE_SIZES)}") from None


@dataclass(frozen=True)
class TableMetrics:
    font_size: float = 7.5
    header_font_size: float = 7
    line_height: float = 9.5
    padding: float = 3.0
    min_row_height: float = 14.0
    min_header_height: float = 16.0
    total_row_height: float = 14.0

    def row_height(self, line_count: int) -> float:
        """max(min_row_height, lines x line_height + top/bottom padding)."""
        return max(self.min_row_height, line_count * self.line_height + 2 * self.padding)

    def max_lines(self, available: float) -> int:
        """How many wrapped lines a single row may hold within `available` points."""
        return max(1, int((available - 2 * self.padding) // self.line_height))


@dataclass(frozen=True)
class LayoutConfig:
    """Page geometry and typography, in points."""

    margin_x: float = 10 * mm
    header_band_height: float = 26 * mm
    footer_band_height: float = 14 * mm
    section_gap: float = 4 * mm
    title_size: float = 11
    body_size: float = 8
    small_size: float = 7
    line_height: float = 10
    signature_height: float = 16 * mm
    table: TableMetrics = field(default_factory=TableMetrics)

    def content_top(self) -> float:
        return self.header_band_height + self.section_gap

    def content_bottom(self, page_height: float) -> float:
        return page_height - self.footer_band_height - self.section_gap


@dataclass(frozen=True)
class Column:
    key: str
    title: str
    share: float
    align: str = "right"


INVOICE_COLUMNS: Tuple[Column, ...] = (
    Column("sr", "Sr. No.", 0.07, "center"),
    Column("description", "Name of Product / Service", 0.28, "left"),
    Column("code", "HSN/SAC", 0.09, "center"),
    Column("qty", "Qty", 0.08, "center"),
    Column("rate", "Rate", 0.09),
    Column("taxable", "Taxable Value", 0.11),
    Column("tax_rate", "GST %", 0.07, "center"),
    Column("tax", "GST Amount", 0.10),
    Column("total", "Total", 0.11),
)

QUOTATION_COLUMNS: Tuple[Column, ...] = (
    Column("sr", "Sr. No.", 0.07, "center"),
    Column("description", "Description", 0.37, "left"),
    Column("qty", "Qty", 0.08, "center"),
    Column("rate", "Rate (Rs)", 0.11),
    Column("tax_rate", "GST %", 0.08, "center"),
    Column("tax", "GST Amount (Rs)", 0.13),
    Column("total", "Total (Rs)", 0.16),
)


def columns_for(kind: DocumentKind) -> Tuple[Column, ...]:
    return INVOICE_COLUMNS if kind is DocumentKind.INVOICE else QUOTATION_COLUMNS


def column_positions(columns: Tuple[Column, ...], x: float, width: float) -> List[Tuple[float, float]]:
    """(left, width) per column; the last column absorbs rounding so the table spans `width` exactly."""
    out: List[Tuple[float, float]] = []
    cursor = x
    for i, col in enumerate(columns):
        w = (x + width - cursor) if i == len(columns) - 1 else width * col.share
        out.append((cursor, w))
        cursor += w
    return out


def row_cells(item: LineItem, index: int, tax_rate: Decimal) -> Dict[str, str]:
    """Display strings for one line item; description is wrapped separately."""
    qty = fmt_qty(item.quantity)
    if item.unit:
        qty = f"{qty} {item.unit}"
    return {
        "sr": str(index + 1),
        "code": item.code or "",
        "qty": qty,
        "rate": fmt_money(item.unit_price),
        "taxable": fmt_money(item.subtotal),
        "tax_rate": fmt_percent(tax_rate),
        "tax": fmt_money(item.tax(tax_rate)),
        "total": fmt_money(item.total(tax_rate)),
    }
