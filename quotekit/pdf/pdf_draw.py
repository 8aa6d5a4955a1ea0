from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, List, Optional

from quotekit.core.paths import default_archive_dir
from quotekit.core.settings import Settings
from quotekit.data.document import DocumentModel, validate_document
from quotekit.pdf.image_surface import ImageSurface
from quotekit.pdf.layout import LayoutConfig, page_size
from quotekit.pdf.paginator import PaginationResult, paginate
from quotekit.pdf.surface import ReportLabSurface

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r'[<>:"/\\|?*\x00-\x1f]+')


def document_filename(document: DocumentModel, template: str = "{kind}-{number}", suffix: str = ".pdf") -> str:
    """Build a file name from a template supporting {kind}, {number}, {date}, {customer}."""
    values = {
        "kind": document.kind.value,
        "number": document.meta.number,
        "date": document.meta.issue_date.isoformat() if isinstance(document.meta.issue_date, date) else "",
        "customer": document.counterparty.name,
    }
    try:
        name = template.format(**values)
    except (KeyError, IndexError, ValueError):
        logger.warning("Bad file name template %r; using the default", template)
        name = "{kind}-{number}".format(**values)
    name = _UNSAFE.sub("_", name).strip(" .") or "document"
    return name + suffix


def archive_path(document: DocumentModel, settings: Settings, suffix: str = ".pdf") -> Path:
    """Where an export lands: archive root (optionally per year) + templated name."""
    root = Path(settings.archive_root).expanduser() if settings.archive_root else default_archive_dir()
    if settings.archive_by_year and isinstance(document.meta.issue_date, date):
        root = root / str(document.meta.issue_date.year)
    return root / document_filename(document, settings.file_name_template, suffix)


def build_document_pdf(
    out_path: Path | str,
    document: DocumentModel,
    settings: Optional[Settings] = None,
    cancel: Any = None,
    layout: Optional[LayoutConfig] = None,
) -> PaginationResult:
    """Draw a complete quotation/invoice PDF with pagination.

    The file is written to a temporary sibling and moved into place only after
    layout finished; on failure or cancellation nothing is left at out_path.
    """
    settings = settings or Settings()
    validate_document(document)
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    surface = ReportLabSurface(
        page_size(settings.page_size),
        title=f"{document.kind.title.title()} {document.meta.number}",
        author=document.company.name,
    )
    logger.info("Building PDF: %s", out)
    result = paginate(document, surface, layout=layout, policy=settings.policy(), cancel=cancel)
    tmp = out.with_name(out.name + ".part")
    try:
        surface.save(tmp)
        tmp.replace(out)
    finally:
        tmp.unlink(missing_ok=True)
    logger.info("PDF built: %s (%d page(s))", out, result.page_count)
    return result


def build_document_png(
    out_path: Path | str,
    document: DocumentModel,
    settings: Optional[Settings] = None,
    dpi: int = 150,
    cancel: Any = None,
    layout: Optional[LayoutConfig] = None,
) -> List[Path]:
    """Render the document to PNG images, one per page (name.png, name-2.png, ...)."""
    settings = settings or Settings()
    validate_document(document)
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    surface = ImageSurface(page_size(settings.page_size), dpi=dpi)
    logger.info("Rendering PNG: %s", out)
    paginate(document, surface, layout=layout, policy=settings.policy(), cancel=cancel)
    paths = surface.save(out)
    logger.info("PNG rendered: %d page(s)", len(paths))
    return paths
