"""Avatar rendering pipeline.

Draws a background shape and a line of centred text onto a surface at
twice its logical resolution.
"""

import logging
import math
from dataclasses import dataclass, fields, replace

from .errors import ContextUnavailable, DegenerateMeasurement
from .font import compose_font_descriptor
from .measure import measure_offsets
from .surface import Surface

logger = logging.getLogger(__name__)

# Backing pixels per logical pixel
DEVICE_PIXEL_RATIO = 2

SHAPES = ("square", "circle", "rounded")


@dataclass(frozen=True)
class RenderOptions:
    """Options for one avatar render. Every field has a default."""

    # Logical size
    width: float = 128
    height: float = 128

    # Text
    text: str = "C"
    font_color: str = "white"
    font_family: str = "Helvetica"
    font_size: float = 64
    font_weight: str = "400"
    font_style: str = "normal"

    # Background
    shape: str = "square"
    background_color: str = "black"

    @property
    def font(self):
        return compose_font_descriptor(self.font_style, self.font_weight,
                                       self.font_size, self.font_family)


def resolve_options(options=None, **overrides):
    """Merge caller options over the defaults.

    Args:
        options: None, a mapping of RenderOptions field names, or a
            RenderOptions instance.
        **overrides: Field values applied after ``options``.

    Returns:
        A new RenderOptions.

    Raises:
        TypeError: on unknown field names.
    """
    if isinstance(options, RenderOptions):
        return replace(options, **overrides)

    values = dict(options or {})
    values.update(overrides)
    return RenderOptions(**values)


class AvatarRenderer:
    """Draws avatars onto one target surface."""

    def __init__(self, target):
        ctx = target.get_context("2d")
        if ctx is None:
            raise ContextUnavailable("target surface has no 2D context")
        self.target = target
        self.ctx = ctx

    def generate(self, options=None, **overrides):
        """Render an avatar onto the target and return the target.

        Args:
            options: Mapping or RenderOptions; see resolve_options.
            **overrides: Individual RenderOptions fields.

        Returns:
            The same target surface, fully drawn.
        """
        opts = resolve_options(options, **overrides)
        logger.debug("Rendering avatar %s", opts)

        self.target.width = DEVICE_PIXEL_RATIO * opts.width
        self.target.height = DEVICE_PIXEL_RATIO * opts.height
        self.target.display_size = (opts.width, opts.height)
        self.ctx.scale(DEVICE_PIXEL_RATIO, DEVICE_PIXEL_RATIO)

        _draw_background(self.ctx, opts)
        _draw_text(self.ctx, opts)

        return self.target


def generate(target=None, options=None, **overrides):
    """Render an avatar onto ``target`` (a new Surface if None).

    Returns:
        The drawn target surface.
    """
    if target is None:
        target = Surface()
    return AvatarRenderer(target).generate(options, **overrides)


# ---------------------------------------------------------------------------
# Internal pipeline stages
# ---------------------------------------------------------------------------

def _draw_background(ctx, opts):
    shape = opts.shape if opts.shape in SHAPES else "square"
    if shape != opts.shape:
        logger.debug("Unknown shape %r, drawing a square", opts.shape)

    ctx.begin_path()
    if shape == "circle":
        _trace_circle(ctx, opts.width, opts.height)
    elif shape == "rounded":
        _trace_rounded(ctx, opts.width, opts.height)
    else:
        ctx.rect(0, 0, opts.width, opts.height)
    ctx.fill_style = opts.background_color
    ctx.fill()


def _trace_circle(ctx, w, h):
    # Radius follows the height even when the canvas is wider than tall
    ctx.arc(w / 2, h / 2, h / 2, 0, 2 * math.pi, False)


def _trace_rounded(ctx, w, h):
    """Rounded rectangle with corner radius h/10.

    Starts on the bottom edge next to the bottom-right corner, then joins
    the corners bottom-left, top-left, top-right and bottom-right.
    """
    r = h / 10
    ctx.move_to(w - r, h)
    ctx.arc_to(0, h, 0, 0, r)
    ctx.arc_to(0, 0, w, 0, r)
    ctx.arc_to(w, 0, w, h, r)
    ctx.arc_to(w, h, 0, h, r)
    ctx.close_path()


def _draw_text(ctx, opts):
    font = opts.font
    ctx.fill_style = opts.font_color
    ctx.font = font
    ctx.text_baseline = "alphabetic"
    ctx.text_align = "center"

    try:
        offset = measure_offsets(opts.text, opts.font_size, font)
    except DegenerateMeasurement as exc:
        logger.warning("Skipping text draw for %r: %s", opts.text, exc)
        return

    x = opts.width / 2 + offset.horizontal
    y = opts.height / 2 + offset.vertical
    logger.debug("Drawing %r at (%.2f, %.2f), offset %s", opts.text, x, y,
                 offset)
    ctx.fill_text(opts.text, x, y)
