"""
Character Sheet Renderer

Fills the character sheet template with submitted values, either as a PDF
(drawn over templates/template.pdf) or as a PNG (drawn over
templates/sheet.png). Both outputs use the same FIELD_MAP.json, so the two
templates must share one layout.

Usage:
    from sheet_renderer import RenderConfig, get_renderer

    config = RenderConfig.from_root('/srv/sheet')
    pdf_bytes = get_renderer('pdf', config).render({'name': 'Alyx'})
"""

import io
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from PIL import Image, ImageDraw, ImageFont
from pypdf import PdfReader, PdfWriter
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from field_map import (
    ORIGIN_BOTTOM_LEFT,
    ORIGIN_TOP_LEFT,
    FieldMap,
    iter_field_values,
    load_field_map,
    resolve_position,
)

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

BASE_DIR = Path(__file__).parent


@dataclass(frozen=True)
class RenderConfig:
    """Asset locations and fixed styling for one deployment."""

    template_pdf: Path
    template_png: Path
    field_map_path: Path
    font_family: str = 'Helvetica'
    text_color: str = '#111111'
    output_name: str = 'VsD_Character'

    @classmethod
    def from_root(cls, root: Union[str, Path], **kwargs) -> 'RenderConfig':
        """Derive asset paths from a deployment root directory."""
        root = Path(root)
        return cls(
            template_pdf=root / 'templates' / 'template.pdf',
            template_png=root / 'templates' / 'sheet.png',
            field_map_path=root / 'FIELD_MAP.json',
            **kwargs
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def hex_to_rgba(hex_color: str, alpha: int = 255) -> tuple:
    """Convert hex color string to RGBA tuple."""
    hex_color = hex_color.lstrip('#')
    if len(hex_color) == 3:
        hex_color = ''.join(c * 2 for c in hex_color)
    if len(hex_color) == 6:
        r = int(hex_color[0:2], 16)
        g = int(hex_color[2:4], 16)
        b = int(hex_color[4:6], 16)
        return (r, g, b, alpha)
    return (0, 0, 0, alpha)


# Raster fonts standing in for the PDF standard fonts. Liberation Sans and
# Arimo share Helvetica's metrics.
FONT_FAMILIES = {
    'Helvetica': [
        "/System/Library/Fonts/Helvetica.ttc",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/liberation2/LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/croscore/Arimo-Regular.ttf",
        "C:/Windows/Fonts/arial.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    ],
}


def get_font(size: float, font_family: str = 'Helvetica') -> ImageFont.ImageFont:
    """Get a raster font of the specified size and family."""
    for path in FONT_FAMILIES.get(font_family, FONT_FAMILIES['Helvetica']):
        if os.path.exists(path):
            try:
                return ImageFont.truetype(path, size)
            except OSError:
                continue
    logger.debug(f"No TrueType font found for {font_family}, using Pillow default")
    return ImageFont.load_default(size)


# =============================================================================
# RENDERERS
# =============================================================================

class SheetRenderer:
    """
    Base class for output formats.

    Subclasses declare the coordinate origin of their drawing surface and
    leave alignment and axis conversion to resolve_position().
    """

    ORIGIN = ORIGIN_TOP_LEFT
    FORMAT = ''
    MIMETYPE = ''

    def __init__(self, config: RenderConfig):
        self.config = config

    @property
    def filename(self) -> str:
        return f"{self.config.output_name}.{self.FORMAT}"

    def load_field_map(self, override: Optional[FieldMap] = None) -> FieldMap:
        return load_field_map(self.config.field_map_path, override)

    def render(self, values: Mapping[str, Any], field_map: Optional[FieldMap] = None) -> bytes:
        """Override in subclasses."""
        raise NotImplementedError


class PDFSheetRenderer(SheetRenderer):
    """Draws values over the first page of the PDF template."""

    ORIGIN = ORIGIN_BOTTOM_LEFT
    FORMAT = 'pdf'
    MIMETYPE = 'application/pdf'

    def render(self, values: Mapping[str, Any], field_map: Optional[FieldMap] = None) -> bytes:
        reader = PdfReader(str(self.config.template_pdf))
        page = reader.pages[0]
        width = float(page.mediabox.width)
        height = float(page.mediabox.height)

        field_map = self.load_field_map(field_map)
        font_name = self.config.font_family

        # Overlay page the same size as the template, merged on afterwards
        packet = io.BytesIO()
        c = canvas.Canvas(packet, pagesize=(width, height), invariant=1)
        c.setFillColorRGB(0, 0, 0)

        fields_rendered = 0
        for name, text, directive in iter_field_values(values, field_map):
            text_width = pdfmetrics.stringWidth(text, font_name, directive.size)
            x, y = resolve_position(directive, text_width, self.ORIGIN, height)
            c.setFont(font_name, directive.size)
            c.drawString(x, y, text)
            fields_rendered += 1
            logger.debug(f"Rendered '{name}' at ({x:.1f}, {y:.1f})")

        c.showPage()
        c.save()
        packet.seek(0)
        page.merge_page(PdfReader(packet).pages[0])

        writer = PdfWriter()
        for template_page in reader.pages:
            writer.add_page(template_page)

        output = io.BytesIO()
        writer.write(output)
        logger.info(f"Rendered {fields_rendered} fields to PDF ({width:.0f}x{height:.0f}pt)")
        return output.getvalue()


class PNGSheetRenderer(SheetRenderer):
    """Draws values over the raster sheet image."""

    ORIGIN = ORIGIN_TOP_LEFT
    FORMAT = 'png'
    MIMETYPE = 'image/png'

    def render(self, values: Mapping[str, Any], field_map: Optional[FieldMap] = None) -> bytes:
        with Image.open(self.config.template_png) as base_img:
            base_img = base_img.convert('RGBA')
            width, height = base_img.size

        field_map = self.load_field_map(field_map)
        color = hex_to_rgba(self.config.text_color)

        # Create transparent overlay
        overlay = Image.new('RGBA', (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)

        fonts: Dict[float, ImageFont.ImageFont] = {}
        fields_rendered = 0
        for name, text, directive in iter_field_values(values, field_map):
            font = fonts.get(directive.size)
            if font is None:
                font = fonts[directive.size] = get_font(directive.size, self.config.font_family)

            text_width = draw.textlength(text, font=font)
            x, y = resolve_position(directive, text_width, self.ORIGIN)
            # "la" anchors the text by its top (ascender) line
            draw.text((x, y), text, font=font, fill=color, anchor='la')
            fields_rendered += 1
            logger.debug(f"Rendered '{name}' at ({x:.1f}, {y:.1f})")

        composited = Image.alpha_composite(base_img, overlay)

        buffer = io.BytesIO()
        composited.save(buffer, format='PNG')
        logger.info(f"Rendered {fields_rendered} fields to PNG ({width}x{height}px)")
        return buffer.getvalue()


RENDERERS = {
    'pdf': PDFSheetRenderer,
    'png': PNGSheetRenderer,
}


def get_renderer(output_format: Any, config: RenderConfig) -> SheetRenderer:
    """
    Pick the renderer for a requested format.

    The format is case-insensitive; anything other than "png" (including a
    missing or non-string format) produces a PDF.
    """
    key = output_format.lower() if isinstance(output_format, str) else 'pdf'
    renderer_class = RENDERERS['png'] if key == 'png' else RENDERERS['pdf']
    return renderer_class(config)
