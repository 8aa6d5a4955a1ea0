from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from quotekit.data.document import DocumentKind
from quotekit.data.sample import sample_document
from quotekit.pdf.pdf_draw import build_document_pdf

# Generates redacted sample PDFs (short and multi-page) for README/demo purposes.

def main() -> None:
    out_dir = Path(__file__).resolve().parents[1] / "assets" / "samples"
    out_dir.mkdir(parents=True, exist_ok=True)

    for kind in (DocumentKind.QUOTATION, DocumentKind.INVOICE):
        for items in (3, 40):
            out_pdf = out_dir / f"sample-{kind.value}-{items}.pdf"
            result = build_document_pdf(out_pdf, sample_document(kind, items=items))
            print(f"Wrote sample to: {out_pdf} ({result.page_count} page(s))")


if __name__ == "__main__":
    main()
