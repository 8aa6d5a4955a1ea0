from __future__ import annotations

# Allow running this file directly (python quotekit/main.py) by ensuring the project root is on sys.path
import os
import sys
if __package__ in (None, ""):
    sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import argparse
import json
import logging
import threading
from pathlib import Path
from typing import List, Optional

from quotekit.core.assets import load_band_images
from quotekit.core.errors import QuoteKitError
from quotekit.core.settings import Settings, load_settings
from quotekit.data import db
from quotekit.data.document import DocumentKind, DocumentModel
from quotekit.data.repo import list_documents, load_document
from quotekit.data.sample import sample_document
from quotekit.pdf.pdf_draw import archive_path, build_document_pdf, build_document_png, document_filename

logger = logging.getLogger(__name__)


def _export(document: DocumentModel, settings: Settings, out: Optional[str], png: bool, cancel: threading.Event) -> List[Path]:
    """Write `document` to `out` (a file or directory) or to the archive folder."""
    suffix = ".png" if png else ".pdf"
    if out:
        target = Path(out).expanduser()
        if target.is_dir() or not target.suffix:
            target = target / document_filename(document, settings.file_name_template, suffix)
    else:
        target = archive_path(document, settings, suffix)
    if png:
        return build_document_png(target, document, settings, cancel=cancel)
    build_document_pdf(target, document, settings, cancel=cancel)
    return [target]


def _cmd_sample(args: argparse.Namespace, settings: Settings, cancel: threading.Event) -> int:
    images = load_band_images(settings)
    for kind in (DocumentKind.QUOTATION, DocumentKind.INVOICE):
        doc = sample_document(kind, items=args.items, settings=settings if args.use_settings else None, images=images)
        for p in _export(doc, settings, args.out, args.png, cancel):
            print(f"Wrote {kind.value} sample to: {p}")
    return 0


def _cmd_export(args: argparse.Namespace, settings: Settings, cancel: threading.Event) -> int:
    db.create_db_and_tables()
    doc = load_document(args.number, settings).with_images(load_band_images(settings))
    for p in _export(doc, settings, args.out, args.png, cancel):
        print(f"Wrote: {p}")
    return 0


def _cmd_render(args: argparse.Namespace, settings: Settings, cancel: threading.Event) -> int:
    with open(args.file, "r", encoding="utf-8") as f:
        data = json.load(f)
    doc = DocumentModel.from_dict(data).with_images(load_band_images(settings))
    for p in _export(doc, settings, args.out, args.png, cancel):
        print(f"Wrote: {p}")
    return 0


def _cmd_list(args: argparse.Namespace, settings: Settings, cancel: threading.Event) -> int:
    db.create_db_and_tables()
    kind = DocumentKind(args.kind) if args.kind else None
    for row in list_documents(kind, args.query or "", args.limit):
        print(f"{row['number']:<14} {row['kind']:<10} {row['issue_date']:%d-%m-%Y}  {row['customer_name']:<30} {row['total']:>14.2f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quotekit", description="Quotation and invoice PDF generator")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log progress (use twice for debug output)")
    parser.add_argument("--settings", help="Path to settings.json (default: QUOTEKIT_HOME/settings.json)")
    parser.add_argument("--db", help="Path to the SQLite database (default: QUOTEKIT_DB or QUOTEKIT_HOME/quotekit.db)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("sample", help="Write a sample quotation and invoice")
    p.add_argument("--items", type=int, default=5, help="Number of line items (default: 5)")
    p.add_argument("--use-settings", action="store_true", help="Take company details and terms from settings")
    p.set_defaults(func=_cmd_sample)

    p = sub.add_parser("export", help="Export a stored document by number")
    p.add_argument("number")
    p.set_defaults(func=_cmd_export)

    p = sub.add_parser("render", help="Render a document saved as JSON")
    p.add_argument("file")
    p.set_defaults(func=_cmd_render)

    for name in ("sample", "export", "render"):
        sp = sub.choices[name]
        sp.add_argument("--png", action="store_true", help="Render PNG images instead of a PDF")
        sp.add_argument("--out", help="Output file or directory (default: the archive folder)")

    p = sub.add_parser("list", help="List stored documents")
    p.add_argument("--kind", choices=[k.value for k in DocumentKind])
    p.add_argument("--query", help="Filter by number or customer name")
    p.add_argument("--limit", type=int, default=50)
    p.set_defaults(func=_cmd_list)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    settings = load_settings(args.settings)
    db.configure(args.db or settings.db_path)
    cancel = threading.Event()
    try:
        return args.func(args, settings, cancel)
    except KeyboardInterrupt:
        cancel.set()
        print("Cancelled.", file=sys.stderr)
        return 130
    except (QuoteKitError, LookupError, ValueError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
