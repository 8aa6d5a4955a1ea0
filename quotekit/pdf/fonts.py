from __future__ import annotations

from functools import lru_cache
from typing import List, Tuple

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError

from quotekit.core.paths import resource_path

REGULAR_TTF = "assets/fonts/NotoSans-Regular.ttf"
BOLD_TTF = "assets/fonts/NotoSans-Bold.ttf"


@lru_cache(maxsize=None)
def register_fonts() -> Tuple[str, str]:
    """Return (regular_font_name, bold_font_name), preferring bundled NotoSans."""
    regular = "Helvetica"
    bold = "Helvetica-Bold"
    reg = resource_path(REGULAR_TTF)
    bld = resource_path(BOLD_TTF)
    try:
        if reg.exists():
            pdfmetrics.registerFont(TTFont("NotoSans", str(reg)))
            regular = "NotoSans"
        if bld.exists():
            pdfmetrics.registerFont(TTFont("NotoSans-Bold", str(bld)))
            bold = "NotoSans-Bold"
    except (TTFError, OSError):
        # fall back to Helvetica variants
        return "Helvetica", "Helvetica-Bold"
    return regular, bold


def font_name(bold: bool = False) -> str:
    regular, heavy = register_fonts()
    return heavy if bold else regular


def string_width(text: str, size: float, bold: bool = False) -> float:
    return pdfmetrics.stringWidth(text, font_name(bold), size)


def wrap_text(text: str, max_width: float, size: float, bold: bool = False) -> List[str]:
    """Greedy word wrap within max_width points.

    Explicit newlines are kept as line breaks. A single word wider than the
    column is broken by characters so no line ever exceeds max_width.
    Empty text gives one empty line.
    """
    lines: List[str] = []
    for paragraph in (text or "").replace("\r", "").split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        line = ""
        for w in words:
            trial = f"{line} {w}" if line else w
            if string_width(trial, size, bold) <= max_width:
                line = trial
                continue
            if line:
                lines.append(line)
            # break long words by characters
            while string_width(w, size, bold) > max_width and len(w) > 1:
                cut = len(w) - 1
                while cut > 1 and string_width(w[:cut], size, bold) > max_width:
                    cut -= 1
                lines.append(w[:cut])
                w = w[cut:]
            line = w
        lines.append(line)
    # drop trailing blank lines from text that ends with newlines
    while len(lines) > 1 and not lines[-1]:
        lines.pop()
    return lines


def fit_text(text: str, max_width: float, size: float, bold: bool = False) -> str:
    """Trim text with an ellipsis so it fits max_width."""
    if string_width(text, size, bold) <= max_width:
        return text
    s = text
    while s and string_width(s + "…", size, bold) > max_width:
        s = s[:-1]
    return s + "…" if s else ""
