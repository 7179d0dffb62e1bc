"""AvatarForge - Render avatars with visually centred text."""

from .errors import AvatarForgeError, ContextUnavailable, DegenerateMeasurement
from .font import compose_font_descriptor
from .measure import Offset, measure_offsets
from .renderer import (
    DEVICE_PIXEL_RATIO,
    AvatarRenderer,
    RenderOptions,
    generate,
    resolve_options,
)
from .surface import Surface

__version__ = "0.1.0"
__all__ = [
    "generate",
    "resolve_options",
    "measure_offsets",
    "compose_font_descriptor",
    "AvatarRenderer",
    "RenderOptions",
    "Offset",
    "Surface",
    "DEVICE_PIXEL_RATIO",
    "AvatarForgeError",
    "ContextUnavailable",
    "DegenerateMeasurement",
]
