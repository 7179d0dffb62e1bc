"""Raster drawing surface with a small canvas-style 2D context.

Shapes and text are rasterized to coverage masks with Pillow and blended
into an RGBA numpy buffer. Coordinates passed to the context are logical;
the context's scale transform maps them onto backing pixels.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageColor, ImageDraw

from .font import load_font, parse_font_descriptor

logger = logging.getLogger(__name__)

# Paths are drawn at this multiple of the backing size and box-filtered down
PATH_SUPERSAMPLE = 4

_DEFAULT_FONT = "10px sans-serif"
_DEFAULT_FILL = "#000000"

_ALIGN_ANCHORS = {"start": "l", "left": "l", "center": "m",
                  "end": "r", "right": "r"}
_BASELINE_ANCHORS = {"alphabetic": "s", "top": "a", "hanging": "a",
                     "middle": "m", "ideographic": "d", "bottom": "d"}

# Canvas text drawing replaces ASCII whitespace with spaces
_WHITESPACE = str.maketrans("\t\n\f\r", "    ")


def _to_dimension(value):
    value = float(value)
    if not math.isfinite(value):
        return 0
    return max(0, int(value))


def _parse_color(value):
    """Return an (r, g, b, a) tuple, or None if Pillow cannot read it."""
    try:
        if isinstance(value, tuple) and len(value) in (3, 4):
            return tuple(int(c) for c in value) + (255,) * (4 - len(value))
        return ImageColor.getcolor(value, "RGBA")
    except (TypeError, ValueError, AttributeError):
        return None


@dataclass(frozen=True)
class TextMetrics:
    """Result of Context2D.measure_text."""
    width: float


class Context2D:
    """2D drawing context bound to one Surface."""

    def __init__(self, surface):
        self._surface = surface
        self.reset()

    def reset(self):
        """Restore the default drawing state and clear the current path."""
        self._font = _DEFAULT_FONT
        self._font_spec = parse_font_descriptor(_DEFAULT_FONT)
        self._fill_style = _DEFAULT_FILL
        self._fill_rgba = _parse_color(_DEFAULT_FILL)
        self.text_baseline = "alphabetic"
        self.text_align = "start"
        self._sx = 1.0
        self._sy = 1.0
        self.begin_path()

    # -- state ------------------------------------------------------------

    @property
    def font(self):
        return self._font

    @font.setter
    def font(self, value):
        try:
            spec = parse_font_descriptor(value)
        except ValueError:
            logger.debug("Ignoring invalid font %r", value)
            return
        self._font = value
        self._font_spec = spec

    @property
    def fill_style(self):
        return self._fill_style

    @fill_style.setter
    def fill_style(self, value):
        rgba = _parse_color(value)
        if rgba is None:
            logger.debug("Ignoring invalid fill style %r", value)
            return
        self._fill_style = value
        self._fill_rgba = rgba

    def scale(self, sx, sy):
        self._sx *= sx
        self._sy *= sy

    # -- paths ------------------------------------------------------------

    def begin_path(self):
        self._subpaths = []
        self._start = None
        self._current = None

    def move_to(self, x, y):
        self._subpaths.append([self._device(x, y)])
        self._start = (x, y)
        self._current = (x, y)

    def line_to(self, x, y):
        if not self._subpaths:
            self.move_to(x, y)
            return
        self._subpaths[-1].append(self._device(x, y))
        self._current = (x, y)

    def close_path(self):
        if self._start is not None:
            self.move_to(*self._start)

    def rect(self, x, y, w, h):
        self.move_to(x, y)
        self.line_to(x + w, y)
        self.line_to(x + w, y + h)
        self.line_to(x, y + h)
        self.close_path()

    def arc(self, x, y, radius, start_angle, end_angle, anticlockwise=False):
        """Add a circular arc, joined to the current point by a line."""
        if not (math.isfinite(radius) and radius >= 0):
            logger.debug("Ignoring arc with radius %r", radius)
            return

        if not anticlockwise:
            if end_angle - start_angle >= 2 * math.pi:
                sweep = 2 * math.pi
            else:
                sweep = (end_angle - start_angle) % (2 * math.pi)
        else:
            if start_angle - end_angle >= 2 * math.pi:
                sweep = -2 * math.pi
            else:
                sweep = -((start_angle - end_angle) % (2 * math.pi))

        self._add_arc_points(x, y, radius, start_angle, sweep)

    def arc_to(self, x1, y1, x2, y2, radius):
        """Add a corner arc tangent to the lines (current→p1) and (p1→p2)."""
        if not (math.isfinite(radius) and radius >= 0):
            logger.debug("Ignoring arc_to with radius %r", radius)
            return
        if self._current is None:
            self.move_to(x1, y1)

        p0 = np.array(self._current, dtype=np.float64)
        p1 = np.array((x1, y1), dtype=np.float64)
        p2 = np.array((x2, y2), dtype=np.float64)
        v1 = p0 - p1
        v2 = p2 - p1
        n1 = np.hypot(*v1)
        n2 = np.hypot(*v2)

        # Degenerate corners collapse to a straight line to p1
        if radius == 0 or n1 == 0 or n2 == 0:
            self.line_to(x1, y1)
            return
        v1 /= n1
        v2 /= n2
        cross = v1[0] * v2[1] - v1[1] * v2[0]
        if abs(cross) < 1e-12:
            self.line_to(x1, y1)
            return

        angle = math.acos(float(np.clip(np.dot(v1, v2), -1.0, 1.0)))
        tangent = radius / math.tan(angle / 2)
        t1 = p1 + v1 * tangent
        t2 = p1 + v2 * tangent
        bisector = (v1 + v2) / np.hypot(*(v1 + v2))
        center = p1 + bisector * (radius / math.sin(angle / 2))

        a1 = math.atan2(t1[1] - center[1], t1[0] - center[0])
        a2 = math.atan2(t2[1] - center[1], t2[0] - center[0])
        sweep = (a2 - a1 + math.pi) % (2 * math.pi) - math.pi

        self.line_to(float(t1[0]), float(t1[1]))
        self._add_arc_points(float(center[0]), float(center[1]), radius,
                             a1, sweep)

    def _add_arc_points(self, cx, cy, radius, start, sweep):
        scale = max(abs(self._sx), abs(self._sy))
        n = max(8, int(math.ceil(abs(sweep) * radius * scale))) + 1
        for a in np.linspace(start, start + sweep, n):
            self.line_to(cx + radius * math.cos(a), cy + radius * math.sin(a))

    def _device(self, x, y):
        return (x * self._sx, y * self._sy)

    # -- drawing ----------------------------------------------------------

    def fill(self):
        """Fill the current path with the fill style."""
        polygons = [p for p in self._subpaths
                    if len(p) >= 3 and np.isfinite(p).all()]
        w, h = self._surface.width, self._surface.height
        if not polygons or w == 0 or h == 0:
            return

        ss = PATH_SUPERSAMPLE
        mask = Image.new("L", (w * ss, h * ss), 0)
        draw = ImageDraw.Draw(mask)
        for polygon in polygons:
            draw.polygon([(x * ss, y * ss) for x, y in polygon], fill=255)
        mask = mask.resize((w, h), Image.Resampling.BOX)

        self._blend(np.asarray(mask, dtype=np.float32) / 255.0)

    def measure_text(self, text):
        """Advance width of ``text`` in logical pixels under the current font."""
        text = str(text).translate(_WHITESPACE)
        if not text:
            return TextMetrics(width=0.0)
        font = load_font(self._font_spec)
        return TextMetrics(width=float(font.getlength(text)))

    def fill_text(self, text, x, y):
        """Draw ``text`` anchored at logical (x, y) using align and baseline."""
        text = str(text).translate(_WHITESPACE)
        w, h = self._surface.width, self._surface.height
        if not text or w == 0 or h == 0:
            return
        if not (math.isfinite(x) and math.isfinite(y)) or self._sy <= 0:
            logger.debug("Ignoring fill_text at (%r, %r) with scale %r",
                         x, y, self._sy)
            return

        anchor = (_ALIGN_ANCHORS.get(self.text_align, "l")
                  + _BASELINE_ANCHORS.get(self.text_baseline, "s"))
        font = load_font(self._font_spec, scale=self._sy)

        mask = Image.new("L", (w, h), 0)
        ImageDraw.Draw(mask).text(self._device(x, y), text, fill=255,
                                  font=font, anchor=anchor)

        self._blend(np.asarray(mask, dtype=np.float32) / 255.0)

    def _blend(self, coverage):
        """Blend the fill colour into the surface by per-pixel coverage."""
        rgba = np.array(self._fill_rgba, dtype=np.float32)
        alpha = coverage * (rgba[3] / 255.0)
        pixels = self._surface._pixels.astype(np.float32)
        # Colour moves toward the fill colour, alpha composites source-over
        colour = pixels[:, :, :3]
        colour += (rgba[:3] - colour) * alpha[:, :, np.newaxis]
        pixels[:, :, 3] += (255.0 - pixels[:, :, 3]) * alpha
        self._surface._pixels = np.rint(pixels).astype(np.uint8)

    def get_image_data(self, x, y, w, h):
        """Return backing pixels of a region as row-major RGBA bytes.

        Areas outside the surface read as transparent black.
        """
        x, y, w, h = int(x), int(y), _to_dimension(w), _to_dimension(h)
        out = np.zeros((h, w, 4), dtype=np.uint8)

        src = self._surface._pixels
        sx1, sy1 = max(0, x), max(0, y)
        sx2 = min(self._surface.width, x + w)
        sy2 = min(self._surface.height, y + h)
        if sx2 > sx1 and sy2 > sy1:
            out[sy1 - y:sy2 - y, sx1 - x:sx2 - x] = src[sy1:sy2, sx1:sx2]

        return out.tobytes()


class Surface:
    """A drawable RGBA raster.

    ``width`` and ``height`` are the backing resolution in pixels; setting
    either clears the pixels and resets the context state. ``display_size``
    is the logical size the surface is meant to be shown at.
    """

    def __init__(self, width=300, height=150):
        self._width = _to_dimension(width)
        self._height = _to_dimension(height)
        self.display_size = None
        self._context = Context2D(self)
        self._reset()

    @property
    def width(self):
        return self._width

    @width.setter
    def width(self, value):
        self._width = _to_dimension(value)
        self._reset()

    @property
    def height(self):
        return self._height

    @height.setter
    def height(self, value):
        self._height = _to_dimension(value)
        self._reset()

    def _reset(self):
        self._pixels = np.zeros((self._height, self._width, 4), dtype=np.uint8)
        self._context.reset()

    def get_context(self, kind="2d"):
        """Return the surface's 2D context, or None for other kinds."""
        if kind != "2d":
            return None
        return self._context

    def to_image(self):
        """Copy of the backing pixels as a PIL Image in RGBA mode."""
        return Image.fromarray(self._pixels.copy())
