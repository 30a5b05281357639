"""Font lookup for poster typography."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from matplotlib.font_manager import FontProperties, findfont
from PIL import ImageFont

from .config import get_fonts_dir


__all__ = ["FONT_WEIGHTS", "FontSet", "load_fonts"]

logger = logging.getLogger(__name__)

# Font file per weight, and the matplotlib weight used when the file is absent
FONT_WEIGHTS: dict[str, tuple[str, str]] = {
    "bold": ("Roboto-Bold.ttf", "bold"),
    "regular": ("Roboto-Regular.ttf", "normal"),
    "light": ("Roboto-Light.ttf", "light"),
}


@lru_cache(maxsize=64)
def _truetype(path: str, size: int) -> ImageFont.FreeTypeFont:
    return ImageFont.truetype(path, size=size)


def _system_font(weight: str) -> Path:
    """Resolve a sans-serif face through matplotlib; DejaVu Sans ships with it."""
    mpl_weight = FONT_WEIGHTS.get(weight, FONT_WEIGHTS["regular"])[1]
    return Path(findfont(FontProperties(family="sans-serif", weight=mpl_weight)))


@dataclass
class FontSet:
    """Font files for the three weights used on a poster."""

    bold: Path | None = None
    regular: Path | None = None
    light: Path | None = None

    @property
    def is_loaded(self) -> bool:
        """Check if all fonts are loaded."""
        return all([self.bold, self.regular, self.light])

    def get_path(self, weight: str = "regular") -> Path:
        """Return the file for a weight, else the regular file, else a system face."""
        font_path = getattr(self, weight, None) or self.regular
        if font_path is not None and font_path.exists():
            return font_path
        return _system_font(weight)

    def get_font(self, weight: str = "regular", size: float = 12.0) -> ImageFont.FreeTypeFont:
        """Get a Pillow font for a weight at a pixel size.

        Args:
            weight: Font weight ('bold', 'regular', or 'light').
            size: Font size in pixels; rounded, at least 1.

        Returns:
            A FreeType font ready for ``ImageDraw.text``.
        """
        return _truetype(str(self.get_path(weight)), max(1, round(size)))


def load_fonts() -> FontSet:
    """Collect the Roboto files present in the fonts directory.

    Missing weights are left as None and fall back at lookup time.
    """
    fonts_dir = get_fonts_dir()
    paths: dict[str, Path | None] = {}
    for weight, (filename, _) in FONT_WEIGHTS.items():
        path = fonts_dir / filename
        if path.exists():
            paths[weight] = path
        else:
            logger.debug("Font not found, using system fallback: %s", path)
            paths[weight] = None
    return FontSet(**paths)
