"""
Module: render.visualizer

Purpose:
    Debug visualization of a page layout. Draws the margin lines and the
    visible content areas, labelled with their flow numbers, on a copy of
    the rendered page, to check a saved layout without starting the GUI.

Key Functions:
    - render_layout(): Page image with layout overlays
    - save_layout_preview(): Save visualization to disk

Dependencies:
    - PIL: Image drawing

Used By:
    - gui.app: --preview output
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Tuple

from PIL import Image, ImageDraw, ImageFont

from ..core.geometry import area_to_pixels
from ..core.models.content_area import AreaType, ContentArea
from ..core.models.margins import Margins

logger = logging.getLogger(__name__)

# Visualization constants
MARGIN_COLOR = (255, 0, 0, 220)
AREA_COLORS = {
    AreaType.TEXT: (0, 0, 255, 180),
    AreaType.HEADING: (128, 0, 128, 180),
    AreaType.IMAGE: (0, 160, 0, 180),
    AreaType.TABLE: (255, 165, 0, 180),
    AreaType.CODE: (90, 90, 90, 180),
    AreaType.LIST: (0, 150, 150, 180),
}
AREA_FILL_ALPHA = 40
LABEL_BG_COLOR = (0, 0, 0, 200)
LABEL_TEXT_COLOR = (255, 255, 255)
LINE_WIDTH = 2
FONT_SIZE = 14


def _load_font(size: int) -> ImageFont.ImageFont:
    try:
        return ImageFont.truetype("Arial.ttf", size)
    except (IOError, OSError):
        return ImageFont.load_default()


def render_layout(
    page_image: Image.Image,
    margins: Margins,
    areas: Iterable[ContentArea],
    scale: float = 1.0,
) -> Image.Image:
    """
    Draw margins and content areas over a rendered page.

    Margins are in unscaled page pixels and are multiplied by scale; area
    percentages are relative to the image itself. Deleted areas are skipped.

    Args:
        page_image: Rendered page (size = page size * scale)
        margins: Signed page margins
        areas: Content areas of the page, tombstones allowed
        scale: Zoom the page was rendered at

    Returns:
        New RGB image with overlays (original unchanged)

    Example:
        >>> img = render_layout(doc.render_page(1, 1.5), margins, layout.areas, 1.5)
        >>> img.save("page1_layout.png")
    """
    debug_img = page_image.convert("RGBA")
    overlay = Image.new("RGBA", debug_img.size, (255, 255, 255, 0))
    draw = ImageDraw.Draw(overlay)
    font = _load_font(FONT_SIZE)
    width, height = debug_img.size

    _draw_margins(draw, margins, width, height, scale)

    visible = sorted((a for a in areas if not a.deleted), key=lambda a: a.index)
    for area in visible:
        x, y, w, h = area_to_pixels((area.x, area.y, area.width, area.height), width, height)
        color = AREA_COLORS.get(area.type, AREA_COLORS[AreaType.TEXT])
        draw.rectangle(
            (x, y, x + w, y + h),
            outline=color,
            fill=color[:3] + (AREA_FILL_ALPHA,),
            width=LINE_WIDTH,
        )
        _draw_label(draw, (x, y), f"{area.index + 1}. {area.name}", font)

    debug_img = Image.alpha_composite(debug_img, overlay)
    return debug_img.convert("RGB")


def _draw_margins(
    draw: ImageDraw.ImageDraw,
    margins: Margins,
    width: int,
    height: int,
    scale: float,
) -> None:
    if scale <= 0:
        scale = 1.0
    x0, y0, x1, y1 = margins.content_box(width / scale, height / scale)
    x0, y0, x1, y1 = x0 * scale, y0 * scale, x1 * scale, y1 * scale
    draw.line((0, y0, width, y0), fill=MARGIN_COLOR, width=LINE_WIDTH)
    draw.line((0, y1, width, y1), fill=MARGIN_COLOR, width=LINE_WIDTH)
    draw.line((x0, 0, x0, height), fill=MARGIN_COLOR, width=LINE_WIDTH)
    draw.line((x1, 0, x1, height), fill=MARGIN_COLOR, width=LINE_WIDTH)


def _draw_label(
    draw: ImageDraw.ImageDraw,
    origin: Tuple[int, int],
    text: str,
    font: ImageFont.ImageFont,
) -> None:
    x, y = origin
    text_bbox = draw.textbbox((0, 0), text, font=font)
    text_width = text_bbox[2] - text_bbox[0]
    text_height = text_bbox[3] - text_bbox[1]
    draw.rectangle((x, y, x + text_width + 4, y + text_height + 4), fill=LABEL_BG_COLOR)
    draw.text((x + 2, y + 2), text, fill=LABEL_TEXT_COLOR, font=font)


def save_layout_preview(
    page_image: Image.Image,
    margins: Margins,
    areas: Iterable[ContentArea],
    output_path: Path,
    scale: float = 1.0,
) -> Path:
    """
    Render the layout and save it as an image.

    Returns:
        The path written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image = render_layout(page_image, margins, areas, scale)
    image.save(output_path)
    logger.info(f"Saved layout preview to {output_path}")
    return output_path
