from __future__ import annotations

import io
import re
from functools import lru_cache
from pathlib import Path
from typing import List, Tuple

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from quotekit.core.errors import AssetError
from quotekit.core.paths import resource_path
from quotekit.pdf.fonts import BOLD_TTF, REGULAR_TTF
from quotekit.pdf.surface import ShapeStyle, TextStyle

# PIL text anchors: horizontal + baseline
_ANCHORS = {"left": "ls", "right": "rs", "center": "ms"}


@lru_cache(maxsize=64)
def _font(size_px: int, bold: bool) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    candidates = [
        str(resource_path(BOLD_TTF if bold else REGULAR_TTF)),
        "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf",
    ]
    for cand in candidates:
        try:
            return ImageFont.truetype(cand, size_px)
        except OSError:
            continue
    return ImageFont.load_default(size=size_px)


class ImageSurface:
    """Raster surface rendering each page to a Pillow image (PNG export)."""

    def __init__(self, pagesize: Tuple[float, float], dpi: int = 150, background: str = "#FFFFFF"):
        self._width, self._height = float(pagesize[0]), float(pagesize[1])
        self._scale = dpi / 72.0
        self._background = background
        self.pages: List[Image.Image] = []
        self.add_page()

    @property
    def page_width(self) -> float:
        return self._width

    @property
    def page_height(self) -> float:
        return self._height

    def _px(self, v: float) -> int:
        return int(round(v * self._scale))

    @property
    def _draw(self) -> ImageDraw.ImageDraw:
        return ImageDraw.Draw(self.pages[-1])

    def add_page(self) -> None:
        size = (self._px(self._width), self._px(self._height))
        self.pages.append(Image.new("RGB", size, self._background))

    def draw_text(self, content: str, x: float, y: float, style: TextStyle = TextStyle()) -> None:
        font = _font(max(1, self._px(style.size)), style.bold)
        anchor = _ANCHORS.get(style.align, "ls")
        self._draw.text((self._px(x), self._px(y)), content, fill=style.color, font=font, anchor=anchor)

    def draw_rect(self, x: float, y: float, w: float, h: float, style: ShapeStyle = ShapeStyle()) -> None:
        box = [self._px(x), self._px(y), self._px(x + w), self._px(y + h)]
        width = max(1, self._px(style.line_width)) if style.stroke else 0
        self._draw.rectangle(box, fill=style.fill, outline=style.stroke, width=width)

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, style: ShapeStyle = ShapeStyle()) -> None:
        if not style.stroke:
            return
        pts = [(self._px(x1), self._px(y1)), (self._px(x2), self._px(y2))]
        self._draw.line(pts, fill=style.stroke, width=max(1, self._px(style.line_width)))

    def draw_image(self, data: bytes, x: float, y: float, w: float, h: float) -> None:
        try:
            with Image.open(io.BytesIO(data)) as src:
                im = src.convert("RGBA")
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise AssetError(f"cannot decode image: {e}") from e
        # preserve aspect ratio, centred in the box
        bw, bh = self._px(w), self._px(h)
        scale = min(bw / im.width, bh / im.height)
        tw, th = max(1, int(im.width * scale)), max(1, int(im.height * scale))
        im = im.resize((tw, th), Image.LANCZOS)
        ox = self._px(x) + (bw - tw) // 2
        oy = self._px(y) + (bh - th) // 2
        self.pages[-1].paste(im, (ox, oy), im)

    def save(self, filename: str | Path) -> List[Path]:
        """Write one PNG per page: name.png, name-2.png, name-3.png...

        Pages go to temporary files first and replace the targets only once
        every page saved. Extra pages left over from a longer earlier export
        are removed.
        """
        out = Path(filename)
        suffix = out.suffix or ".png"
        paths = [out if i == 1 else out.with_name(f"{out.stem}-{i}{suffix}") for i in range(1, len(self.pages) + 1)]
        temps = [p.with_name(p.name + ".part") for p in paths]
        try:
            for page, tmp in zip(self.pages, temps):
                page.save(tmp, format="PNG")
            for tmp, p in zip(temps, paths):
                tmp.replace(p)
        finally:
            for tmp in temps:
                tmp.unlink(missing_ok=True)
        stale = re.compile(rf"{re.escape(out.stem)}-(\d+){re.escape(suffix)}")
        for old in out.parent.glob(f"{out.stem}-*{suffix}"):
            m = stale.fullmatch(old.name)
            if m and int(m.group(1)) > len(paths):
                old.unlink()
        return paths
