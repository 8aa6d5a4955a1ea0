from __future__ import annotations

import json
from pathlib import Path

from pypdf import PdfReader

from quotekit.data.document import DocumentKind
from quotekit.data.sample import sample_document
from quotekit.main import main

from conftest import make_document, make_items


def _args(tmp_path: Path, *rest: str) -> list[str]:
    return ["--settings", str(tmp_path / "settings.json"), "--db", str(tmp_path / "cli.db"), *rest]


def test_sample_writes_quotation_and_invoice(tmp_path: Path) -> None:
    out = tmp_path / "out"
    out.mkdir()
    assert main(_args(tmp_path, "sample", "--items", "3", "--out", str(out))) == 0
    names = sorted(p.name for p in out.iterdir())
    assert names == ["invoice-INV-0001.pdf", "quotation-QT-0001.pdf"]
    assert len(PdfReader(str(out / "invoice-INV-0001.pdf")).pages) == 1


def test_render_json_document(tmp_path: Path) -> None:
    doc_json = tmp_path / "doc.json"
    doc_json.write_text(json.dumps(make_document(items=make_items(2)).to_dict()), encoding="utf-8")
    out_pdf = tmp_path / "rendered.pdf"
    assert main(_args(tmp_path, "render", str(doc_json), "--out", str(out_pdf))) == 0
    assert "QUOTATION" in (PdfReader(str(out_pdf)).pages[0].extract_text() or "")


def test_export_unknown_number_fails_cleanly(tmp_path: Path, capsys) -> None:
    assert main(_args(tmp_path, "export", "QT-9999", "--out", str(tmp_path))) == 1
    assert "QT-9999" in capsys.readouterr().err


def test_invalid_json_document_reports_problems(tmp_path: Path, capsys) -> None:
    data = sample_document(DocumentKind.INVOICE, items=1).to_dict()
    data["meta"]["number"] = ""
    doc_json = tmp_path / "bad.json"
    doc_json.write_text(json.dumps(data), encoding="utf-8")
    assert main(_args(tmp_path, "render", str(doc_json), "--out", str(tmp_path / "bad.pdf"))) == 1
    assert "document number is required" in capsys.readouterr().err
    assert not (tmp_path / "bad.pdf").exists()
