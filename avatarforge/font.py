"""Font descriptors and font loading."""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache

from PIL import ImageFont

logger = logging.getLogger(__name__)

_STYLES = ("normal", "italic", "oblique")
_VARIANTS = ("small-caps",)
_WEIGHT_KEYWORDS = {"normal": "400", "bold": "700", "bolder": "700",
                    "lighter": "300"}

_DESCRIPTOR_RE = re.compile(
    r"^\s*(?P<prefix>.*?)\s*(?P<size>\d*\.?\d+)px\s+(?P<family>.+?)\s*$"
)

# Generic and well-known family names mapped to a fallback class
_FAMILY_CLASSES = {
    "sans-serif": "sans",
    "system-ui": "sans",
    "helvetica": "sans",
    "helvetica neue": "sans",
    "arial": "sans",
    "serif": "serif",
    "times": "serif",
    "times new roman": "serif",
    "monospace": "mono",
    "courier": "mono",
    "courier new": "mono",
}

# (class, bold, italic) -> font file names, most specific first
_SYSTEM_FONTS = {
    ("sans", False, False): ["Helvetica.ttc", "Arial.ttf", "arial.ttf",
                             "LiberationSans-Regular.ttf", "DejaVuSans.ttf"],
    ("sans", True, False): ["Arial Bold.ttf", "arialbd.ttf",
                            "LiberationSans-Bold.ttf", "DejaVuSans-Bold.ttf"],
    ("sans", False, True): ["Arial Italic.ttf", "ariali.ttf",
                            "LiberationSans-Italic.ttf",
                            "DejaVuSans-Oblique.ttf"],
    ("sans", True, True): ["Arial Bold Italic.ttf", "arialbi.ttf",
                           "LiberationSans-BoldItalic.ttf",
                           "DejaVuSans-BoldOblique.ttf"],
    ("serif", False, False): ["Times New Roman.ttf", "times.ttf",
                              "LiberationSerif-Regular.ttf",
                              "DejaVuSerif.ttf"],
    ("serif", True, False): ["Times New Roman Bold.ttf", "timesbd.ttf",
                             "LiberationSerif-Bold.ttf",
                             "DejaVuSerif-Bold.ttf"],
    ("serif", False, True): ["Times New Roman Italic.ttf", "timesi.ttf",
                             "LiberationSerif-Italic.ttf",
                             "DejaVuSerif-Italic.ttf"],
    ("serif", True, True): ["Times New Roman Bold Italic.ttf", "timesbi.ttf",
                            "LiberationSerif-BoldItalic.ttf",
                            "DejaVuSerif-BoldItalic.ttf"],
    ("mono", False, False): ["Courier New.ttf", "cour.ttf",
                             "LiberationMono-Regular.ttf",
                             "DejaVuSansMono.ttf"],
    ("mono", True, False): ["Courier New Bold.ttf", "courbd.ttf",
                            "LiberationMono-Bold.ttf",
                            "DejaVuSansMono-Bold.ttf"],
    ("mono", False, True): ["Courier New Italic.ttf", "couri.ttf",
                            "LiberationMono-Italic.ttf",
                            "DejaVuSansMono-Oblique.ttf"],
    ("mono", True, True): ["Courier New Bold Italic.ttf", "courbi.ttf",
                           "LiberationMono-BoldItalic.ttf",
                           "DejaVuSansMono-BoldOblique.ttf"],
}

_FONT_EXTENSIONS = (".ttf", ".otf", ".ttc", ".otc", ".woff", ".woff2")


@dataclass(frozen=True)
class FontSpec:
    """A parsed font descriptor."""
    style: str
    weight: str
    size: float  # logical pixels
    family: str

    @property
    def bold(self):
        if self.weight.isdigit():
            return int(self.weight) >= 600
        return self.weight in ("bold", "bolder")

    @property
    def italic(self):
        return self.style in ("italic", "oblique")

    @property
    def families(self):
        """Family names in preference order, quotes stripped."""
        names = [name.strip().strip("'\"") for name in self.family.split(",")]
        return tuple(name for name in names if name)


def compose_font_descriptor(style, weight, size, family):
    """Build the font shorthand used for both measuring and drawing text.

    Every place that sets a font for avatar text goes through this, so the
    off-screen measurement and the final draw always agree.
    """
    return f"{style} {weight} {size}px {family}"


def parse_font_descriptor(descriptor):
    """Parse a ``[style] [variant] [weight] <size>px <family>`` shorthand.

    Raises:
        ValueError: if the descriptor is malformed or the size is not
            positive.
    """
    match = _DESCRIPTOR_RE.match(str(descriptor))
    if match is None:
        raise ValueError(f"invalid font descriptor: {descriptor!r}")

    size = float(match.group("size"))
    if size <= 0:
        raise ValueError(f"font size must be positive: {descriptor!r}")

    style = "normal"
    weight = "400"
    for token in match.group("prefix").split():
        token = token.lower()
        if token == "normal" or token in _VARIANTS:
            continue
        if token in _STYLES:
            style = token
        elif token in _WEIGHT_KEYWORDS:
            weight = _WEIGHT_KEYWORDS[token]
        elif token.isdigit() and 1 <= int(token) <= 1000:
            weight = token
        else:
            raise ValueError(f"invalid font descriptor: {descriptor!r}")

    return FontSpec(style=style, weight=weight, size=size,
                    family=match.group("family"))


def _candidate_files(family, bold, italic):
    """Font file names worth trying for one family name."""
    if family.lower().endswith(_FONT_EXTENSIONS):
        return [family]

    font_class = _FAMILY_CLASSES.get(family.lower())
    if font_class is not None:
        return _SYSTEM_FONTS[(font_class, bold, italic)]

    stem = family.replace(" ", "")
    suffix = {(False, False): "-Regular", (True, False): "-Bold",
              (False, True): "-Italic", (True, True): "-BoldItalic"}
    names = [f"{stem}{suffix[(bold, italic)]}{ext}" for ext in (".ttf", ".otf")]
    if not bold and not italic:
        names += [f"{family}.ttf", f"{stem}.ttf", f"{family}.otf"]
    return names


@lru_cache(maxsize=64)
def _load(families, bold, italic, size):
    for family in families + ("sans-serif",):
        for name in _candidate_files(family, bold, italic):
            try:
                return ImageFont.truetype(name, size)
            except OSError:
                continue

    logger.debug("No system font found for %s; using the bundled default",
                 ", ".join(families))
    return ImageFont.load_default(size=size)


def load_font(spec, scale=1.0):
    """Load a FreeType font for a FontSpec.

    Args:
        spec: FontSpec describing the font.
        scale: Multiplier applied to ``spec.size`` (the drawing transform),
            so text drawn on a 2x surface is rasterized at device size.

    Returns:
        PIL ImageFont.FreeTypeFont.
    """
    return _load(spec.families, spec.bold, spec.italic, spec.size * scale)
