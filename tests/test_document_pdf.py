from __future__ import annotations

import math
import re
import threading
from pathlib import Path

import pytest
from PIL import Image
from pypdf import PdfReader

from quotekit.core.errors import DocumentValidationError, ExportCancelled
from quotekit.core.settings import Settings
from quotekit.data.document import DocumentKind
from quotekit.pdf.pdf_draw import archive_path, build_document_pdf, build_document_png, document_filename

from conftest import COMPANY, make_document, make_items


def _a4_size_points() -> tuple[float, float]:
    # ReportLab A4 in points
    return (595.2755905511812, 841.8897637795277)


def _text(reader: PdfReader) -> str:
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def test_quotation_pdf_drawn(tmp_path: Path) -> None:
    out_pdf = tmp_path / "quote.pdf"
    result = build_document_pdf(out_pdf, make_document(items=make_items(3)))

    reader = PdfReader(str(out_pdf))
    assert len(reader.pages) == result.page_count == 1

    box = reader.pages[0].mediabox
    width = float(box.right - box.left)
    height = float(box.top - box.bottom)
    a4w, a4h = _a4_size_points()
    assert math.isclose(width, a4w, rel_tol=0, abs_tol=1.0)
    assert math.isclose(height, a4h, rel_tol=0, abs_tol=1.0)

    text = _text(reader)
    assert "QUOTATION" in text
    assert "09-08-2025" in text
    assert COMPANY.name in text
    # 3 x 100 + 18% GST
    assert re.search(r"Grand Total\s*Rs\.\s*354\.00", text) is not None
    assert "Three Hundred Fifty Four Rupees Only" in text
    assert "Page 1 of 1" in text


def test_long_invoice_has_numbered_pages(tmp_path: Path) -> None:
    out_pdf = tmp_path / "invoice.pdf"
    doc = make_document(DocumentKind.INVOICE, items=make_items(70), number="INV-0042")
    result = build_document_pdf(out_pdf, doc)

    reader = PdfReader(str(out_pdf))
    assert result.page_count >= 2
    assert len(reader.pages) == result.page_count
    for i, page in enumerate(reader.pages, 1):
        text = page.extract_text() or ""
        assert f"Page {i} of {result.page_count}" in text
        assert COMPANY.name in text
    assert reader.metadata.title == "Tax Invoice INV-0042"


def test_cancelled_export_leaves_no_file(tmp_path: Path) -> None:
    out_pdf = tmp_path / "cancelled.pdf"
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(ExportCancelled):
        build_document_pdf(out_pdf, make_document(items=make_items(5)), cancel=cancel)
    assert list(tmp_path.iterdir()) == []


def test_failed_export_keeps_previous_file(tmp_path: Path) -> None:
    out_pdf = tmp_path / "doc.pdf"
    out_pdf.write_bytes(b"previous")
    with pytest.raises(DocumentValidationError):
        build_document_pdf(out_pdf, make_document(items=make_items(1), number=""))
    assert out_pdf.read_bytes() == b"previous"
    assert [p.name for p in tmp_path.iterdir()] == ["doc.pdf"]


def test_png_export_writes_one_image_per_page(tmp_path: Path) -> None:
    out_png = tmp_path / "quote.png"
    paths = build_document_png(out_png, make_document(items=make_items(60)), dpi=72)
    assert len(paths) >= 2
    assert paths[0] == out_png
    assert paths[1].name == "quote-2.png"
    for p in paths:
        with Image.open(p) as im:
            assert im.size == (595, 842)


def test_document_filename_is_sanitised() -> None:
    doc = make_document(number="QT/2025:7")
    assert document_filename(doc) == "quotation-QT_2025_7.pdf"
    assert document_filename(doc, "{customer} {date}", ".png") == "Test Customer 2025-08-09.png"
    # unknown placeholder falls back to the default template
    assert document_filename(doc, "{nope}") == "quotation-QT_2025_7.pdf"


def test_archive_path_groups_by_year(tmp_path: Path) -> None:
    settings = Settings(archive_root=str(tmp_path), archive_by_year=True)
    assert archive_path(make_document(), settings) == tmp_path / "2025" / "quotation-QT-0001.pdf"
    flat = Settings(archive_root=str(tmp_path), archive_by_year=False, file_name_template="{number}")
    assert archive_path(make_document(), flat) == tmp_path / "QT-0001.pdf"


def test_same_document_gives_identical_bytes(tmp_path: Path) -> None:
    doc = make_document(DocumentKind.INVOICE, items=make_items(30), number="INV-0003")
    build_document_pdf(tmp_path / "a.pdf", doc)
    build_document_pdf(tmp_path / "b.pdf", doc)
    assert (tmp_path / "a.pdf").read_bytes() == (tmp_path / "b.pdf").read_bytes()


def test_png_export_removes_pages_left_by_a_longer_export(tmp_path: Path) -> None:
    out_png = tmp_path / "quote.png"
    assert len(build_document_png(out_png, make_document(items=make_items(60)), dpi=36)) >= 2
    assert build_document_png(out_png, make_document(items=make_items(3)), dpi=36) == [out_png]
    assert [p.name for p in tmp_path.iterdir()] == ["quote.png"]


def test_failed_png_export_keeps_previous_image(tmp_path: Path, monkeypatch) -> None:
    out_png = tmp_path / "quote.png"
    out_png.write_bytes(b"previous")
    real_save = Image.Image.save
    calls = {"n": 0}

    def save_then_fail(self, fp, *args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OSError("disk full")
        return real_save(self, fp, *args, **kwargs)

    monkeypatch.setattr(Image.Image, "save", save_then_fail)
    with pytest.raises(OSError):
        build_document_png(out_png, make_document(items=make_items(60)), dpi=36)
    assert out_png.read_bytes() == b"previous"
    assert [p.name for p in tmp_path.iterdir()] == ["quote.png"]
