"""
Drawing surfaces used by the paginator.

All coordinates are in points with the origin at the TOP-left corner of the
page and y growing downwards; text is positioned by its baseline. Each
surface starts on its first page.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Protocol, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from quotekit.core.errors import AssetError
from quotekit.pdf.fonts import font_name

logger = logging.getLogger(__name__)

BLACK = "#000000"


@dataclass(frozen=True)
class TextStyle:
    size: float = 8
    bold: bool = False
    color: str = BLACK
    # left | right | center; x is the anchor for the alignment
    align: str = "left"

    @property
    def font(self) -> str:
        return font_name(self.bold)


@dataclass(frozen=True)
class ShapeStyle:
    stroke: Optional[str] = BLACK
    fill: Optional[str] = None
    line_width: float = 0.5


class Box(NamedTuple):
    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height


class DrawingSurface(Protocol):
    @property
    def page_width(self) -> float: ...

    @property
    def page_height(self) -> float: ...

    def draw_text(self, content: str, x: float, y: float, style: TextStyle = ...) -> None: ...

    def draw_rect(self, x: float, y: float, w: float, h: float, style: ShapeStyle = ...) -> None: ...

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, style: ShapeStyle = ...) -> None: ...

    def draw_image(self, data: bytes, x: float, y: float, w: float, h: float) -> None: ...

    def add_page(self) -> None: ...

    def save(self, filename: str | Path) -> Any: ...


class DrawOp(NamedTuple):
    kind: str  # text | rect | line | image
    args: Tuple[Any, ...]
    # image ops only: what to draw instead when the target cannot draw the image
    fallback: Tuple["DrawOp", ...] = ()


class RecordingSurface:
    """Keeps draw operations in memory, one list per page.

    The paginator lays out into a recording first and replays it onto the
    real surface once the page count is known.
    """

    def __init__(self, page_width: float, page_height: float):
        self._width = float(page_width)
        self._height = float(page_height)
        self.pages: List[List[DrawOp]] = [[]]

    @property
    def page_width(self) -> float:
        return self._width

    @property
    def page_height(self) -> float:
        return self._height

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def draw_text(self, content: str, x: float, y: float, style: TextStyle = TextStyle()) -> None:
        self.pages[-1].append(DrawOp("text", (content, x, y, style)))

    def draw_rect(self, x: float, y: float, w: float, h: float, style: ShapeStyle = ShapeStyle()) -> None:
        self.pages[-1].append(DrawOp("rect", (x, y, w, h, style)))

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, style: ShapeStyle = ShapeStyle()) -> None:
        self.pages[-1].append(DrawOp("line", (x1, y1, x2, y2, style)))

    def draw_image(self, data: bytes, x: float, y: float, w: float, h: float, fallback: Sequence[DrawOp] = ()) -> None:
        self.pages[-1].append(DrawOp("image", (data, x, y, w, h), tuple(fallback)))

    def add_page(self) -> None:
        self.pages.append([])

    def annotate(self, page_index: int, op: DrawOp) -> None:
        """Append an operation to an already finished page."""
        self.pages[page_index].append(op)

    def texts(self, page_index: int) -> List[str]:
        return [op.args[0] for op in self.pages[page_index] if op.kind == "text"]

    def replay(self, target: DrawingSurface, should_stop: Optional[Callable[[], None]] = None) -> None:
        dispatch: Dict[str, Callable[..., None]] = {
            "text": target.draw_text,
            "rect": target.draw_rect,
            "line": target.draw_line,
            "image": target.draw_image,
        }
        for i, ops in enumerate(self.pages):
            if should_stop is not None:
                should_stop()
            if i:
                target.add_page()
            for op in ops:
                self._replay_op(target, dispatch, op)

    def _replay_op(self, target: DrawingSurface, dispatch: Dict[str, Callable[..., None]], op: DrawOp) -> None:
        if op.kind != "image" or not op.fallback:
            dispatch[op.kind](*op.args)
            return
        try:
            target.draw_image(*op.args)
        except AssetError as e:
            logger.warning("Image could not be drawn (%s); drawing the default band instead", e)
            for sub in op.fallback:
                self._replay_op(target, dispatch, sub)

    def save(self, filename: str | Path) -> None:
        raise NotImplementedError("RecordingSurface keeps operations in memory only")


class ReportLabSurface:
    """PDF surface backed by a ReportLab canvas writing into memory until save()."""

    def __init__(self, pagesize: Tuple[float, float], title: str = "", author: str = ""):
        self._buffer = io.BytesIO()
        self._width, self._height = float(pagesize[0]), float(pagesize[1])
        # no timestamps or random ids, so equal input gives equal bytes
        self._canvas = Canvas(self._buffer, pagesize=pagesize, invariant=1)
        if title:
            self._canvas.setTitle(title)
        if author:
            self._canvas.setAuthor(author)
        self._canvas.setCreator("quotekit")
        self._saved = False

    @property
    def page_width(self) -> float:
        return self._width

    @property
    def page_height(self) -> float:
        return self._height

    def _flip(self, y: float) -> float:
        return self._height - y

    def _apply_shape(self, style: ShapeStyle) -> Tuple[int, int]:
        c = self._canvas
        c.setLineWidth(style.line_width)
        if style.stroke:
            c.setStrokeColor(colors.HexColor(style.stroke))
        if style.fill:
            c.setFillColor(colors.HexColor(style.fill))
        return (1 if style.stroke else 0), (1 if style.fill else 0)

    def draw_text(self, content: str, x: float, y: float, style: TextStyle = TextStyle()) -> None:
        c = self._canvas
        c.setFont(style.font, style.size)
        c.setFillColor(colors.HexColor(style.color))
        yy = self._flip(y)
        if style.align == "right":
            c.drawRightString(x, yy, content)
        elif style.align == "center":
            c.drawCentredString(x, yy, content)
        else:
            c.drawString(x, yy, content)

    def draw_rect(self, x: float, y: float, w: float, h: float, style: ShapeStyle = ShapeStyle()) -> None:
        stroke, fill = self._apply_shape(style)
        self._canvas.rect(x, self._flip(y + h), w, h, stroke=stroke, fill=fill)

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, style: ShapeStyle = ShapeStyle()) -> None:
        self._apply_shape(style)
        self._canvas.line(x1, self._flip(y1), x2, self._flip(y2))

    def draw_image(self, data: bytes, x: float, y: float, w: float, h: float) -> None:
        try:
            reader = ImageReader(io.BytesIO(data))
            # ImageReader decodes lazily, so size lookups can fail here too
            reader.getSize()
        except Exception as e:  # ReportLab raises bare Exception subclasses for bad images
            raise AssetError(f"cannot decode image: {e}") from e
        self._canvas.drawImage(reader, x, self._flip(y + h), width=w, height=h, preserveAspectRatio=True, mask="auto")

    def add_page(self) -> None:
        self._canvas.showPage()

    def getvalue(self) -> bytes:
        if not self._saved:
            self._canvas.save()
            self._saved = True
        return self._buffer.getvalue()

    def save(self, filename: str | Path) -> Path:
        out = Path(filename)
        out.write_bytes(self.getvalue())
        return out
