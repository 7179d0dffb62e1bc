"""Tests for the glyph offset estimator."""

import numpy as np
import pytest


def _buffer(height, width):
    return np.zeros((height, width, 4), dtype=np.uint8)


def test_find_ink_bounds():
    from avatarforge.measure import find_ink_bounds
    buf = _buffer(10, 20)
    buf[2:6, 3:9, 0] = 255
    bounds = find_ink_bounds(buf.tobytes(), 20, 10)
    assert (bounds.top, bounds.bottom, bounds.left, bounds.right) == (2, 5, 3, 8)


def test_find_ink_bounds_sparse_pixels():
    from avatarforge.measure import find_ink_bounds
    buf = _buffer(8, 8)
    buf[0, 7, 0] = 255
    buf[6, 1, 0] = 255
    bounds = find_ink_bounds(buf.tobytes(), 8, 8)
    assert (bounds.top, bounds.bottom, bounds.left, bounds.right) == (0, 6, 1, 7)


def test_partial_coverage_is_not_ink():
    from avatarforge.measure import find_ink_bounds
    buf = _buffer(10, 10)
    buf[4:6, 4:6, 0] = 255
    # Anti-aliased fringe
    buf[3, 3:7, 0] = 254
    buf[6, 3:7, 0] = 128
    bounds = find_ink_bounds(buf.tobytes(), 10, 10)
    assert (bounds.top, bounds.bottom, bounds.left, bounds.right) == (4, 5, 4, 5)


def test_only_red_channel_counts():
    from avatarforge import DegenerateMeasurement
    from avatarforge.measure import find_ink_bounds
    buf = _buffer(5, 5)
    buf[:, :, 1:] = 255
    with pytest.raises(DegenerateMeasurement):
        find_ink_bounds(buf.tobytes(), 5, 5)


@pytest.mark.parametrize("width,height", [(10, 10), (0, 10), (10, 0)])
def test_no_ink_is_degenerate(width, height):
    from avatarforge import DegenerateMeasurement
    from avatarforge.measure import find_ink_bounds
    with pytest.raises(DegenerateMeasurement):
        find_ink_bounds(_buffer(height, width).tobytes(), width, height)


class _StubContext:
    """Context whose text always inks rows 4-9 and columns 6-11."""

    def __init__(self, surface):
        self.surface = surface
        self.fonts = []
        self.fill_style = None
        self.text_align = None
        self.text_baseline = None

    @property
    def font(self):
        return self.fonts[-1]

    @font.setter
    def font(self, value):
        self.fonts.append(value)

    def measure_text(self, text):
        from avatarforge.surface import TextMetrics
        return TextMetrics(width=10.0)

    def fill_text(self, text, x, y):
        self.drawn = (text, x, y)

    def get_image_data(self, x, y, w, h):
        buf = _buffer(h, w)
        buf[4:10, 6:12, 0] = 255
        return buf.tobytes()


class _StubSurface:
    def __init__(self):
        self._width = 0
        self._height = 0
        self.ctx = _StubContext(self)

    @property
    def width(self):
        return self._width

    @width.setter
    def width(self, value):
        self._width = int(value)
        self.ctx.fonts.clear()

    @property
    def height(self):
        return self._height

    @height.setter
    def height(self, value):
        self._height = int(value)
        self.ctx.fonts.clear()

    def get_context(self, kind="2d"):
        return self.ctx


def test_offset_arithmetic():
    from avatarforge.measure import measure_offsets
    surfaces = []

    def factory():
        surfaces.append(_StubSurface())
        return surfaces[-1]

    offset = measure_offsets("X", 10, "normal 400 10px Test", factory)

    # Scratch is 20x20; ink box centre is (8.5, 6.5)
    assert offset.horizontal == pytest.approx(1.5)
    assert offset.vertical == pytest.approx(3.5)

    ctx = surfaces[0].ctx
    assert ctx.drawn == ("X", 10.0, 10.0)
    # Font is re-applied after the resize
    assert ctx.fonts == ["normal 400 10px Test"]
    assert ctx.fill_style == "white"
    assert (ctx.text_align, ctx.text_baseline) == ("center", "alphabetic")


def test_fresh_scratch_surface_per_call():
    from avatarforge.measure import measure_offsets
    surfaces = []

    def factory():
        surfaces.append(_StubSurface())
        return surfaces[-1]

    measure_offsets("X", 10, "normal 400 10px Test", factory)
    measure_offsets("X", 10, "normal 400 10px Test", factory)
    assert len(surfaces) == 2
    assert surfaces[0] is not surfaces[1]


def test_scratch_without_context():
    from avatarforge import ContextUnavailable, Surface
    from avatarforge.measure import measure_offsets

    class NoContextSurface(Surface):
        def get_context(self, kind="2d"):
            return None

    with pytest.raises(ContextUnavailable):
        measure_offsets("A", 32, "normal 400 32px Helvetica", NoContextSurface)


def test_symmetric_glyph_horizontal_offset():
    from avatarforge import compose_font_descriptor, measure_offsets
    font = compose_font_descriptor("normal", "400", 64, "Helvetica")
    offset = measure_offsets("O", 64, font)
    assert abs(offset.horizontal) <= 2
    # Drawn on the alphabetic baseline, the glyph sits above the centre
    assert offset.vertical > 0


def test_offset_recentres_glyph():
    from avatarforge import Surface, compose_font_descriptor, measure_offsets
    from avatarforge.measure import find_ink_bounds

    font = compose_font_descriptor("normal", "700", 48, "sans-serif")
    offset = measure_offsets("g", 48, font)

    surface = Surface(120, 120)
    ctx = surface.get_context()
    ctx.font = font
    ctx.text_baseline = "alphabetic"
    ctx.text_align = "center"
    ctx.fill_style = "white"
    ctx.fill_text("g", 60 + offset.horizontal, 60 + offset.vertical)

    data = ctx.get_image_data(0, 0, 120, 120)
    bounds = find_ink_bounds(data, 120, 120)
    assert abs((bounds.left + bounds.right) / 2 - 60) <= 1.5
    assert abs((bounds.top + bounds.bottom) / 2 - 60) <= 1.5


def test_empty_text_is_degenerate():
    from avatarforge import DegenerateMeasurement, measure_offsets
    with pytest.raises(DegenerateMeasurement):
        measure_offsets("", 64, "normal 400 64px Helvetica")
