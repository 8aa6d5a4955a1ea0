"""
Single-pass page layout for quotations and invoices.

The paginator walks the document section by section, keeping a vertical
cursor per page. Before a section is drawn its height is measured; when it
does not fit above the footer band the current page is closed (footer), a new
one is opened (header, plus the table column headings when the break falls
inside the item table) and the section is drawn there. Table rows are never
split across pages. Text blocks taller than a whole page (intro, party
details, terms) continue line by line on the following pages.

Layout is recorded in memory first, so the "Page i of N" labels can be added
once N is known and nothing reaches the caller's surface if layout fails or
is cancelled.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from quotekit.core.currency import fmt_money, fmt_percent, fmt_qty, sum_money
from quotekit.core.errors import ExportCancelled, PaginationError
from quotekit.core.words import WordsPolicy, amount_to_words
from quotekit.data.document import DocumentKind, DocumentModel, validate_document
from quotekit.pdf.bands import FooterBand, HeaderBand, SignatureBand
from quotekit.pdf.fonts import fit_text, string_width, wrap_text
from quotekit.pdf.layout import (
    BRAND,
    SHADE,
    STRIPE,
    TEXT_COLOR,
    LayoutConfig,
    column_positions,
    columns_for,
    row_cells,
)
from quotekit.pdf.surface import Box, DrawingSurface, DrawOp, RecordingSurface, ShapeStyle, TextStyle

logger = logging.getLogger(__name__)

GRID = ShapeStyle(stroke=TEXT_COLOR, line_width=0.5)
SHADED = ShapeStyle(stroke=TEXT_COLOR, fill=SHADE, line_width=0.5)
STRIPED = ShapeStyle(stroke=None, fill=STRIPE)
BLOCK_GAP = 8  # horizontal gap between side-by-side blocks
LABEL_W = 64   # label column inside the metadata boxes
CAPTION_H = 14


class LayoutState(str, Enum):
    HEADER = "header"
    METADATA = "metadata"
    INTRO = "intro"
    TABLE_HEADER = "table_header"
    TABLE_ROWS = "table_rows"
    TOTALS = "totals"
    TERMS = "terms"
    FOOTER = "footer"
    DONE = "done"


@dataclass
class PageLayout:
    page_index: int
    cursor_y: float
    content_top: float
    content_bottom: float
    # cursor position once the page furniture (and repeated table heading) is drawn
    section_start: float

    @property
    def is_fresh(self) -> bool:
        return self.cursor_y <= self.section_start

    def fits(self, height: float) -> bool:
        return self.cursor_y + height <= self.content_bottom

    def advance(self, height: float) -> None:
        if height < 0:
            raise PaginationError("cursor cannot move upwards within a page")
        self.cursor_y += height


@dataclass(frozen=True)
class RowPlacement:
    index: int
    page: int
    top: float
    height: float
    lines: int

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class PaginationResult:
    page_count: int
    rows: Tuple[RowPlacement, ...]
    words: str
    content_top: float
    content_bottom: float

    @property
    def row_pages(self) -> Tuple[int, ...]:
        return tuple(r.page for r in self.rows)


def _is_cancelled(cancel: Any) -> bool:
    if cancel is None:
        return False
    is_set = getattr(cancel, "is_set", None)
    if callable(is_set):
        return bool(is_set())
    return bool(cancel())


def _fmt_date(val: Optional[date]) -> str:
    return val.strftime("%d-%m-%Y") if isinstance(val, date) else ""


class DocumentPaginator:
    """Lays out one DocumentModel. Create a new paginator per run."""

    def __init__(
        self,
        document: DocumentModel,
        layout: Optional[LayoutConfig] = None,
        policy: Optional[WordsPolicy] = None,
        cancel: Any = None,
    ):
        validate_document(document)
        self.document = document
        self.layout = layout or LayoutConfig()
        self.policy = policy or WordsPolicy()
        self.totals = document.totals
        self.columns = columns_for(document.kind)
        self.header_band = HeaderBand(document.images.header)
        self.footer_band = FooterBand(document.images.footer)
        self.signature_band = SignatureBand(document.images.signature)
        self.state = LayoutState.HEADER
        self._cancel = cancel
        self._rows: List[RowPlacement] = []
        self._surface: Optional[RecordingSurface] = None
        self._page: Optional[PageLayout] = None

    # ----- driver -----
    def run(self, surface: DrawingSurface) -> PaginationResult:
        if self.state is not LayoutState.HEADER:
            raise PaginationError(f"paginator already used (state: {self.state.value}); create a new one")
        lay = self.layout
        rec = RecordingSurface(surface.page_width, surface.page_height)
        self._surface = rec
        self._left = lay.margin_x
        self._width = rec.page_width - 2 * lay.margin_x
        self._half = (self._width - BLOCK_GAP) / 2
        self._cols = column_positions(self.columns, self._left, self._width)
        self._content_top = lay.content_top()
        self._content_bottom = lay.content_bottom(rec.page_height)
        self._region = self._content_bottom - self._content_top
        if self._region < 4 * lay.line_height:
            raise PaginationError("page is too small for the configured header and footer bands")
        self._heading = self._heading_lines()
        self._heading_h = self._heading_height()
        self._plans = [self._row_plan(i) for i in range(len(self.document.items))]
        self._words = amount_to_words(self.totals.grand_total, self.policy)

        steps = (
            (LayoutState.HEADER, self._start_first_page),
            (LayoutState.METADATA, self._render_metadata),
            (LayoutState.INTRO, self._render_intro),
            (LayoutState.TABLE_HEADER, self._render_table_header),
            (LayoutState.TABLE_ROWS, self._render_rows),
            (LayoutState.TOTALS, self._render_totals),
            (LayoutState.TERMS, self._render_terms),
            (LayoutState.FOOTER, self._render_footer_band),
        )
        for state, step in steps:
            self.state = state
            self._check_cancel()
            step()
        self._number_pages()
        self.state = LayoutState.DONE

        rec.replay(surface, self._check_cancel)
        logger.info(
            "Laid out %s %s: %d item(s) on %d page(s)",
            self.document.kind.value,
            self.document.meta.number,
            len(self._rows),
            rec.page_count,
        )
        return PaginationResult(
            page_count=rec.page_count,
            rows=tuple(self._rows),
            words=self._words,
            content_top=self._content_top,
            content_bottom=self._content_bottom,
        )

    def _check_cancel(self) -> None:
        if _is_cancelled(self._cancel):
            raise ExportCancelled(f"export of {self.document.meta.number} was cancelled")

    # ----- pages -----
    def _new_page_layout(self, index: int) -> PageLayout:
        top = self._content_top
        return PageLayout(index, top, top, self._content_bottom, section_start=top)

    def _start_first_page(self) -> None:
        self._page = self._new_page_layout(0)
        self._draw_header_band()

    def _draw_header_band(self) -> None:
        box = Box(0, 0, self._surface.page_width, self.layout.header_band_height)
        self.header_band.render(self._surface, self.document, box, self.layout)

    def _render_footer_band(self) -> None:
        h = self.layout.footer_band_height
        box = Box(0, self._surface.page_height - h, self._surface.page_width, h)
        self.footer_band.render(self._surface, self.document, box, self.layout)

    def _ensure_room(self, height: float, in_table: bool = False) -> None:
        if self._page.fits(height):
            return
        if not self._page.is_fresh:
            self._break_page(in_table)
        if not self._page.fits(height):
            raise PaginationError(
                f"{self.state.value} block needs {height:.0f}pt but a page holds "
                f"{self._page.content_bottom - self._page.cursor_y:.0f}pt"
            )

    def _keep_together(self, height: float, first_part: float) -> None:
        """Start a block on a fresh page when it fits there, else flow it from here."""
        self._ensure_room(height if height <= self._region else first_part)

    def _take_lines(self, remaining: int, overhead: float, step: float) -> int:
        """How many of `remaining` lines fit below the cursor; breaks the page when none do."""
        page = self._page
        n = int((page.content_bottom - page.cursor_y - overhead + 1e-6) // step)
        if n < 1 and not page.is_fresh:
            self._break_page(False)
            page = self._page
            n = int((page.content_bottom - page.cursor_y - overhead + 1e-6) // step)
        if n < 1:
            raise PaginationError(f"page is too small for one line of the {self.state.value} block")
        return min(n, remaining)

    def _gap(self) -> None:
        page = self._page
        page.advance(max(0.0, min(self.layout.section_gap, page.content_bottom - page.cursor_y)))

    def _break_page(self, in_table: bool) -> None:
        self._render_footer_band()
        self._surface.add_page()
        self._page = self._new_page_layout(self._page.page_index + 1)
        self._draw_header_band()
        if in_table:
            self._draw_table_heading()
        self._page.section_start = self._page.cursor_y
        logger.debug("Page break before %s; now on page %d", self.state.value, self._page.page_index + 1)

    def _number_pages(self) -> None:
        rec = self._surface
        total = rec.page_count
        style = TextStyle(size=self.layout.small_size, color=TEXT_COLOR, align="right")
        x = rec.page_width - self.layout.margin_x
        y = rec.page_height - self.layout.footer_band_height - 3
        for i in range(total):
            rec.annotate(i, DrawOp("text", (f"Page {i + 1} of {total}", x, y, style)))

    # ----- drawing helpers -----
    def _text(self, content: str, x: float, y: float, size: Optional[float] = None, bold: bool = False,
              color: str = TEXT_COLOR, align: str = "left") -> None:
        style = TextStyle(size=size or self.layout.body_size, bold=bold, color=color, align=align)
        self._surface.draw_text(content, x, y, style)

    def _cell_text(self, content: str, col: int, baseline: float, size: float, bold: bool = False) -> None:
        x, w = self._cols[col]
        pad = self.layout.table.padding
        content = fit_text(content, w - 2 * pad, size, bold)
        align = self.columns[col].align
        if align == "right":
            self._text(content, x + w - pad, baseline, size, bold, align="right")
        elif align == "center":
            self._text(content, x + w / 2, baseline, size, bold, align="center")
        else:
            self._text(content, x + pad, baseline, size, bold)

    def _column_rules(self, top: float, height: float) -> None:
        for x, _w in self._cols[1:]:
            self._surface.draw_line(x, top, x, top + height, GRID)

    def _label_lines(self, rows: Sequence[Tuple[str, str]], value_width: float) -> List[Tuple[str, str]]:
        out: List[Tuple[str, str]] = []
        for label, value in rows:
            for j, ln in enumerate(wrap_text(value, value_width, self.layout.small_size)):
                out.append((label if j == 0 else "", ln))
        return out

    # ----- metadata -----
    def _party_rows(self) -> List[Tuple[str, str]]:
        cp = self.document.counterparty
        rows = [("M/S", cp.name)]
        for label, value in (
            ("Address", cp.address),
            ("Phone", cp.phone),
            ("Email", cp.email),
            ("GSTIN", cp.gstin),
            ("Place of Supply", cp.place_of_supply),
        ):
            if value:
                rows.append((label, value))
        return rows

    def _meta_rows(self) -> List[Tuple[str, str]]:
        meta = self.document.meta
        if self.document.kind is DocumentKind.QUOTATION:
            rows = [("Quotation No.", meta.number), ("Date", _fmt_date(meta.issue_date))]
            if meta.due_date:
                rows.append(("Valid Until", _fmt_date(meta.due_date)))
            return rows
        rows = [("Invoice No.", meta.number), ("Invoice Date", _fmt_date(meta.issue_date))]
        if meta.due_date:
            rows.append(("Due Date", _fmt_date(meta.due_date)))
        if meta.order_number:
            rows.append(("Order No.", " / ".join(filter(None, [meta.order_number, _fmt_date(meta.order_date)]))))
        if meta.challan_number:
            rows.append(("Delivery Challan No.", " / ".join(filter(None, [meta.challan_number, _fmt_date(meta.challan_date)]))))
        if meta.eway_lr_number:
            rows.append(("E-Way/LR No.", meta.eway_lr_number))
        rows.append(("Reverse Charge", "Yes" if meta.reverse_charge else "No"))
        return rows

    def _render_metadata(self) -> None:
        lay = self.layout
        doc = self.document
        is_invoice = doc.kind is DocumentKind.INVOICE
        value_w = self._half - LABEL_W - 6
        left = self._label_lines(self._party_rows(), value_w)
        right = self._label_lines(self._meta_rows(), value_w)
        title_h = 20
        count = max(len(left), len(right))
        frame = CAPTION_H + 6
        self._keep_together(title_h + frame + count * lay.line_height, title_h + frame + lay.line_height)

        y = self._page.cursor_y
        cx = self._surface.page_width / 2
        title = doc.kind.title
        tw = string_width(title, lay.title_size, True) + 16
        self._surface.draw_rect(cx - tw / 2, y + 1, tw, 16, ShapeStyle(stroke=BRAND, line_width=1.5))
        self._text(title, cx, y + 13, lay.title_size, True, color=BRAND, align="center")
        if doc.company.gstin:
            self._text(f"GSTIN : {doc.company.gstin}", self._left, y + 13, lay.small_size, True)
        if is_invoice:
            self._text("ORIGINAL FOR RECIPIENT", self._left + self._width, y + 13, lay.small_size, align="right")

        self._page.advance(title_h)
        captions = ("Customer Detail", "Invoice Details") if is_invoice else ("To", "Quotation Details")
        # long addresses continue in a second pair of boxes on the next page
        start = 0
        while start < count:
            self._check_cancel()
            n = self._take_lines(count - start, frame, lay.line_height)
            y = self._page.cursor_y
            block_h = frame + n * lay.line_height
            for x, caption, lines in (
                (self._left, captions[0], left),
                (self._left + self._half + BLOCK_GAP, captions[1], right),
            ):
                self._surface.draw_rect(x, y, self._half, block_h, GRID)
                self._surface.draw_rect(x, y, self._half, CAPTION_H, SHADED)
                self._text(caption, x + 4, y + 10, lay.small_size, True)
                base = y + CAPTION_H + lay.line_height - 2
                for i, (label, value) in enumerate(lines[start:start + n]):
                    by = base + i * lay.line_height
                    if label:
                        self._text(label, x + 4, by, lay.small_size, True)
                    self._text(value, x + LABEL_W, by, lay.small_size)
            self._page.advance(block_h)
            start += n
        self._gap()

    # ----- intro -----
    def _render_intro(self) -> None:
        doc = self.document
        lay = self.layout
        lines: List[Tuple[str, bool]] = []
        if doc.kind is DocumentKind.QUOTATION:
            lines.append(("Dear Sir/Madam,", False))
        if doc.intro:
            lines.extend((ln, False) for ln in wrap_text(doc.intro, self._width, lay.body_size))
        if doc.meta.subject:
            lines.extend((ln, True) for ln in wrap_text(f"Sub: {doc.meta.subject}", self._width, lay.body_size, True))
        if not lines:
            return
        step = lay.line_height
        self._keep_together(len(lines) * step, step)
        start = 0
        while start < len(lines):
            self._check_cancel()
            n = self._take_lines(len(lines) - start, 0, step)
            self._draw_lines(lines[start:start + n], self._left, self._page.cursor_y + step - 2)
            self._page.advance(n * step)
            start += n
        self._gap()

    # ----- item table -----
    def _heading_lines(self) -> List[List[str]]:
        t = self.layout.table
        return [
            wrap_text(col.title, w - 2 * t.padding, t.header_font_size, True)
            for col, (_x, w) in zip(self.columns, self._cols)
        ]

    def _heading_height(self) -> float:
        t = self.layout.table
        most = max(len(lines) for lines in self._heading)
        return max(t.min_header_height, most * (t.header_font_size + 2) + 2 * t.padding)

    def _row_plan(self, index: int) -> Tuple[List[str], float]:
        t = self.layout.table
        item = self.document.items[index]
        desc_col = next(i for i, col in enumerate(self.columns) if col.key == "description")
        lines = wrap_text(item.description, self._cols[desc_col][1] - 2 * t.padding, t.font_size)
        limit = t.max_lines(self._content_bottom - self._content_top - self._heading_h)
        if len(lines) > limit:
            logger.warning("Item %d description needs %d lines; truncated to %d to fit one page", index + 1, len(lines), limit)
            lines = lines[:limit]
            lines[-1] = fit_text(lines[-1] + "…", self._cols[desc_col][1] - 2 * t.padding, t.font_size)
        return lines, t.row_height(len(lines))

    def _draw_table_heading(self) -> None:
        t = self.layout.table
        y = self._page.cursor_y
        h = self._heading_h
        self._surface.draw_rect(self._left, y, self._width, h, SHADED)
        step = t.header_font_size + 2
        for (x, w), lines in zip(self._cols, self._heading):
            first = y + (h - len(lines) * step) / 2 + t.header_font_size
            for j, ln in enumerate(lines):
                self._text(ln, x + w / 2, first + j * step, t.header_font_size, True, align="center")
        self._column_rules(y, h)
        self._page.advance(h)

    def _render_table_header(self) -> None:
        # keep the heading with the first row
        first_row = self._plans[0][1] if self._plans else 0
        self._ensure_room(self._heading_h + first_row)
        self._draw_table_heading()

    def _render_rows(self) -> None:
        t = self.layout.table
        for index, item in enumerate(self.document.items):
            self._check_cancel()
            lines, height = self._plans[index]
            self._ensure_room(height, in_table=True)
            top = self._page.cursor_y
            if index % 2 == 1:
                self._surface.draw_rect(self._left, top, self._width, height, STRIPED)
            self._surface.draw_rect(self._left, top, self._width, height, GRID)
            self._column_rules(top, height)
            baseline = top + t.padding + t.font_size - 1
            cells = row_cells(item, index, self.document.tax_rate)
            for col, column in enumerate(self.columns):
                if column.key == "description":
                    for j, ln in enumerate(lines):
                        self._cell_text(ln, col, baseline + j * t.line_height, t.font_size)
                else:
                    self._cell_text(cells[column.key], col, baseline, t.font_size)
            self._rows.append(RowPlacement(index, self._page.page_index, top, height, len(lines)))
            self._page.advance(height)

    # ----- totals -----
    def _breakdown(self) -> List[Tuple[str, str, bool]]:
        tot = self.totals
        return [
            ("Taxable Amount", fmt_money(tot.subtotal), False),
            (f"Add : GST @ {fmt_percent(tot.tax_rate)}%", fmt_money(tot.tax_amount), False),
            ("Total Tax", fmt_money(tot.tax_amount), False),
            ("Grand Total", f"Rs. {fmt_money(tot.grand_total, grouping=True)}", True),
        ]

    def _render_totals(self) -> None:
        lay = self.layout
        t = lay.table
        pad = t.padding
        words = wrap_text(self._words, self._half - 2 * pad, lay.body_size)
        breakdown = self._breakdown()
        block_h = max(len(words) + 1, len(breakdown)) * lay.line_height + 2 * pad + 2
        height = t.total_row_height + lay.section_gap + block_h
        self._ensure_room(height)

        y = self._page.cursor_y
        tot = self.totals
        self._surface.draw_rect(self._left, y, self._width, t.total_row_height, SHADED)
        self._column_rules(y, t.total_row_height)
        baseline = y + t.padding + t.font_size
        values = {
            "description": "Total",
            "qty": fmt_qty(sum_money(it.quantity for it in self.document.items)),
            "taxable": fmt_money(tot.subtotal),
            "tax": fmt_money(tot.tax_amount),
            "total": fmt_money(tot.grand_total),
        }
        for col, column in enumerate(self.columns):
            if column.key in values:
                self._cell_text(values[column.key], col, baseline, t.font_size, bold=True)

        y += t.total_row_height + lay.section_gap
        rx = self._left + self._half + BLOCK_GAP
        self._surface.draw_rect(self._left, y, self._half, block_h, GRID)
        self._surface.draw_rect(rx, y, self._half, block_h, GRID)
        base = y + pad + lay.line_height - 2
        self._text("Total in words", self._left + pad, base, bold=True)
        for i, ln in enumerate(words, 1):
            self._text(ln, self._left + pad, base + i * lay.line_height)
        for i, (label, value, bold) in enumerate(breakdown):
            by = base + i * lay.line_height
            self._text(label, rx + pad, by, bold=bold)
            self._text(value, rx + self._half - pad, by, bold=bold, align="right")
        self._page.advance(height)
        self._gap()

    # ----- terms and signature -----
    def _terms_lines(self) -> List[Tuple[str, bool]]:
        doc = self.document
        width = self._half - 2 * self.layout.table.padding
        size = self.layout.body_size
        lines: List[Tuple[str, bool]] = []
        if doc.terms:
            lines.append(("Terms & Conditions", True))
            for term in doc.terms:
                lines.extend((ln, False) for ln in wrap_text(term, width, size))
        if doc.kind is DocumentKind.INVOICE and doc.company.bank_details:
            lines.append(("Bank Details", True))
            for entry in doc.company.bank_details:
                lines.extend((ln, False) for ln in wrap_text(entry, width, size))
        if doc.kind is DocumentKind.INVOICE:
            msg = "Certified that the particulars given above are true and correct."
            lines.extend((ln, False) for ln in wrap_text(msg, width, size))
        return lines

    def _render_terms(self) -> None:
        lay = self.layout
        pad = lay.table.padding
        step = lay.line_height
        doc = self.document
        left = self._terms_lines()
        signatory = list(doc.signatory)
        right_h = step + lay.signature_height + len(signatory) * step
        if right_h + 2 * pad > self._region:
            raise PaginationError("page is too small for the signature block")

        # terms longer than a page flow on; the tail stays with the signature
        start = 0
        while max((len(left) - start) * step, right_h) + 2 * pad > self._region:
            self._check_cancel()
            n = self._take_lines(len(left) - start, 2 * pad, step)
            y = self._page.cursor_y
            chunk_h = n * step + 2 * pad
            self._surface.draw_rect(self._left, y, self._half, chunk_h, GRID)
            self._draw_lines(left[start:start + n], self._left + pad, y + pad + step - 2)
            self._page.advance(chunk_h)
            start += n
        rest = left[start:]
        height = max(len(rest) * step, right_h) + 2 * pad
        self._ensure_room(height)

        y = self._page.cursor_y
        rx = self._left + self._half + BLOCK_GAP
        self._surface.draw_rect(self._left, y, self._half, height, GRID)
        self._surface.draw_rect(rx, y, self._half, height, GRID)
        base = y + pad + step - 2
        self._draw_lines(rest, self._left + pad, base)

        company = fit_text(f"For {doc.company.name}", self._half - 2 * pad, lay.body_size + 1, True)
        self._text(company, rx + pad, base, lay.body_size + 1, True, color=BRAND)
        sig_box = Box(rx + pad, y + pad + step + 2, min(self._half - 2 * pad, 150), lay.signature_height - 4)
        self.signature_band.render(self._surface, doc, sig_box, lay)
        sy = y + pad + step + lay.signature_height + step - 2
        for i, ln in enumerate(signatory):
            self._text(ln, rx + pad, sy + i * step, bold=(i == len(signatory) - 1))
        self._page.advance(height)

    def _draw_lines(self, lines: Sequence[Tuple[str, bool]], x: float, baseline: float) -> None:
        for i, (ln, bold) in enumerate(lines):
            self._text(ln, x, baseline + i * self.layout.line_height, bold=bold)


def paginate(
    document: DocumentModel,
    surface: DrawingSurface,
    *,
    layout: Optional[LayoutConfig] = None,
    policy: Optional[WordsPolicy] = None,
    cancel: Any = None,
) -> PaginationResult:
    """Lay out `document` onto `surface` (which starts on its first page)."""
    return DocumentPaginator(document, layout=layout, policy=policy, cancel=cancel).run(surface)
