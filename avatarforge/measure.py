"""Glyph offset estimation by scanning rendered ink pixels.

Anchor-based text placement (alphabetic baseline, centre alignment) does
not put the visible glyphs at the centre of a box, because font metrics
do not match the actual ink. The estimator draws the text once on a
scratch surface, finds the ink bounding box and returns the shift that
moves the box centre onto the anchor point.
"""

import logging
from dataclasses import dataclass

import numpy as np

from .errors import ContextUnavailable, DegenerateMeasurement
from .surface import Surface

logger = logging.getLogger(__name__)

# Text is drawn in this colour on the scratch surface. A pixel counts as
# ink only when its red channel equals INK_VALUE exactly, so partially
# covered edge pixels are left out of the bounding box.
INK_COLOR = "white"
INK_VALUE = 255


@dataclass(frozen=True)
class Offset:
    """Shift, in logical pixels, to apply to the anchor-based position."""
    horizontal: float
    vertical: float


@dataclass(frozen=True)
class InkBounds:
    """Inclusive row/column indices of the outermost ink pixels."""
    top: int
    bottom: int
    left: int
    right: int


def find_ink_bounds(data, width, height):
    """Locate the bounding box of ink pixels in an RGBA buffer.

    Args:
        data: Row-major RGBA bytes (or uint8 array), 4 bytes per pixel.
        width: Buffer width in pixels.
        height: Buffer height in pixels.

    Returns:
        InkBounds of the first/last rows and columns containing ink.

    Raises:
        DegenerateMeasurement: if no pixel qualifies as ink.
    """
    pixels = np.frombuffer(bytes(data), dtype=np.uint8)
    ink = pixels.reshape(int(height), int(width), 4)[:, :, 0] == INK_VALUE

    rows = np.flatnonzero(ink.any(axis=1))
    cols = np.flatnonzero(ink.any(axis=0))
    if rows.size == 0:
        raise DegenerateMeasurement(
            f"no ink pixels in {width}x{height} measurement buffer")

    return InkBounds(top=int(rows[0]), bottom=int(rows[-1]),
                     left=int(cols[0]), right=int(cols[-1]))


def measure_offsets(text, font_size, font, surface_factory=Surface):
    """Measure how far anchor-placed text sits from its visual centre.

    Args:
        text: Text to measure; should be non-empty and visible.
        font_size: Font size in logical pixels; sets the scratch height.
        font: Font descriptor, identical to the one used for the final draw.
        surface_factory: Callable returning a fresh drawable surface.

    Returns:
        Offset to add to the centre-anchored draw position.

    Raises:
        ContextUnavailable: if the scratch surface has no 2D context.
        DegenerateMeasurement: if the text leaves no ink.
    """
    surface = surface_factory()
    ctx = surface.get_context("2d")
    if ctx is None:
        raise ContextUnavailable("scratch surface has no 2D context")
    ctx.font = font

    # Twice the advance width leaves room for overhanging glyphs
    surface.width = 2 * ctx.measure_text(text).width
    surface.height = 2 * font_size

    # Resizing reset the context state
    ctx.font = font
    ctx.text_baseline = "alphabetic"
    ctx.text_align = "center"
    ctx.fill_style = INK_COLOR

    width, height = surface.width, surface.height
    ctx.fill_text(text, width / 2, height / 2)

    data = ctx.get_image_data(0, 0, width, height)
    bounds = find_ink_bounds(data, width, height)
    logger.debug("Ink bounds for %r in %dx%d: %s", text, width, height, bounds)

    text_center_y = (bounds.bottom - bounds.top) / 2 + bounds.top
    text_center_x = (bounds.right - bounds.left) / 2 + bounds.left

    return Offset(horizontal=width / 2 - text_center_x,
                  vertical=height / 2 - text_center_y)
