"""
Header, footer and signature bands.

Each band is drawn either from a custom image or, when there is no image or
it does not decode, from the company profile. Images are checked once, when
the band is constructed; a surface that still fails to draw one gets the
default band instead.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from quotekit.core.assets import probe_image
from quotekit.core.errors import AssetError
from quotekit.data.document import DocumentModel
from quotekit.pdf.fonts import fit_text
from quotekit.pdf.layout import BRAND, RULE_COLOR, TEXT_COLOR, WHITE, LayoutConfig
from quotekit.pdf.surface import Box, DrawingSurface, RecordingSurface, ShapeStyle, TextStyle

logger = logging.getLogger(__name__)


class Band:
    name = "band"

    def __init__(self, image: Optional[bytes] = None):
        self.image: Optional[bytes] = None
        if image:
            try:
                probe_image(image)
                self.image = image
            except AssetError as e:
                logger.warning("Unusable %s image (%s); drawing the default %s band", self.name, e, self.name)

    @property
    def uses_image(self) -> bool:
        return self.image is not None

    def render(self, surface: DrawingSurface, document: DocumentModel, box: Box, layout: LayoutConfig) -> None:
        if self.image is not None:
            self.render_with_image(surface, document, box, layout)
        else:
            self.render_default(surface, document, box, layout)

    def render_with_image(self, surface: DrawingSurface, document: DocumentModel, box: Box, layout: LayoutConfig) -> None:
        if isinstance(surface, RecordingSurface):
            # keep the default band next to the image for surfaces that cannot draw it
            fallback = RecordingSurface(surface.page_width, surface.page_height)
            self.render_default(fallback, document, box, layout)
            surface.draw_image(self.image, box.x, box.y, box.width, box.height, fallback=fallback.pages[0])
            return
        try:
            surface.draw_image(self.image, box.x, box.y, box.width, box.height)
        except AssetError as e:
            logger.warning("Cannot draw %s image (%s); drawing the default %s band", self.name, e, self.name)
            self.render_default(surface, document, box, layout)

    def render_default(self, surface: DrawingSurface, document: DocumentModel, box: Box, layout: LayoutConfig) -> None:
        raise NotImplementedError


class HeaderBand(Band):
    name = "header"

    def render_default(self, surface: DrawingSurface, document: DocumentModel, box: Box, layout: LayoutConfig) -> None:
        company = document.company
        surface.draw_rect(box.x, box.y, box.width, box.height, ShapeStyle(stroke=None, fill=BRAND))
        left = box.x + layout.margin_x
        right = box.x + box.width - layout.margin_x
        half = (right - left) / 2
        y = box.y + 22
        surface.draw_text(fit_text(company.name, half, 14, True), left, y, TextStyle(size=14, bold=True, color=WHITE))
        small = TextStyle(size=layout.small_size, color=WHITE)
        y += 11
        lines: List[str] = []
        if company.tagline:
            lines.append(company.tagline)
        lines.extend(ln for ln in company.address.splitlines() if ln.strip())
        for ln in lines[:3]:
            surface.draw_text(fit_text(ln, half, layout.small_size), left, y, small)
            y += 9
        contact = []
        if company.phone:
            contact.append(f"Tel: {company.phone}")
        if company.website:
            contact.append(f"Web: {company.website}")
        if company.email:
            contact.append(f"Email: {company.email}")
        cy = box.y + 20
        right_style = TextStyle(size=layout.small_size, color=WHITE, align="right")
        for ln in contact:
            surface.draw_text(fit_text(ln, half, layout.small_size), right, cy, right_style)
            cy += 9


class FooterBand(Band):
    name = "footer"

    def render_default(self, surface: DrawingSurface, document: DocumentModel, box: Box, layout: LayoutConfig) -> None:
        company = document.company
        left = box.x + layout.margin_x
        right = box.x + box.width - layout.margin_x
        surface.draw_line(left, box.y + 4, right, box.y + 4, ShapeStyle(stroke=RULE_COLOR, line_width=0.75))
        half = (right - left) / 2
        style = TextStyle(size=layout.small_size, color=TEXT_COLOR)
        y = box.y + 14
        address = [ln.strip() for ln in company.address.splitlines() if ln.strip()]
        for ln in (address or [company.name])[:2]:
            surface.draw_text(fit_text(ln, half, layout.small_size), left, y, style)
            y += 9
        y = box.y + 14
        right_style = TextStyle(size=layout.small_size, color=TEXT_COLOR, align="right")
        for ln in [company.phone, f"Email: {company.email}" if company.email else ""]:
            if ln:
                surface.draw_text(fit_text(ln, half, layout.small_size), right, y, right_style)
                y += 9


class SignatureBand(Band):
    name = "signature"

    def render_default(self, surface: DrawingSurface, document: DocumentModel, box: Box, layout: LayoutConfig) -> None:
        # blank space for a wet signature
        y = box.y + box.height - 2
        surface.draw_line(box.x, y, box.x + min(box.width, 140), y, ShapeStyle(stroke=RULE_COLOR, line_width=0.4))
