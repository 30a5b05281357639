"""Layout style configuration and style pack loading."""

from __future__ import annotations

import json
from dataclasses import dataclass
from dataclasses import fields as dataclass_fields

from .render_constants import (
    COORDS_FONT_FRACTION,
    COORDS_Y_POS,
    COUNTRY_FONT_FRACTION,
    COUNTRY_LABEL_Y_POS,
    DIVIDER_LINE_WIDTH,
    DIVIDER_X_END,
    DIVIDER_X_START,
    DIVIDER_Y_POS,
    GRADIENT_HEIGHT_FRACTION,
    LETTER_SPACING_FRACTION,
    MIN_LETTER_SPACING,
    TITLE_FONT_FRACTION,
    TITLE_Y_POS,
)


__all__ = [
    "StyleConfig",
    "load_style_pack",
]


@dataclass(frozen=True)
class StyleConfig:
    """Layout knobs for the compositor. Colors live in the theme."""

    road_width_scale: float = 1.0
    gradient_strength: float = GRADIENT_HEIGHT_FRACTION
    title_y_pos: float = TITLE_Y_POS
    divider_y_pos: float = DIVIDER_Y_POS
    country_label_y_pos: float = COUNTRY_LABEL_Y_POS
    coords_y_pos: float = COORDS_Y_POS
    title_font_fraction: float = TITLE_FONT_FRACTION
    country_font_fraction: float = COUNTRY_FONT_FRACTION
    coords_font_fraction: float = COORDS_FONT_FRACTION
    letter_spacing_fraction: float = LETTER_SPACING_FRACTION
    min_letter_spacing: float = MIN_LETTER_SPACING
    divider_x_start: float = DIVIDER_X_START
    divider_x_end: float = DIVIDER_X_END
    divider_line_width: float = DIVIDER_LINE_WIDTH

    def __post_init__(self) -> None:
        if self.road_width_scale <= 0:
            raise ValueError("road_width_scale must be positive.")
        if not 0 <= self.gradient_strength <= 1:
            raise ValueError("gradient_strength must be between 0 and 1.")


def load_style_pack(path: str) -> StyleConfig:
    """Load a StyleConfig from a JSON style pack file."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError("Style pack must be a JSON object.")
    allowed_keys = {field.name for field in dataclass_fields(StyleConfig)}
    unknown_keys = set(data) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown style pack keys: {sorted(unknown_keys)}")
    return StyleConfig(**data)
