"""Shared render constants."""

from __future__ import annotations


__all__ = [
    "CIRCLE_STEPS",
    "COORDS_FONT_FRACTION",
    "COORDS_Y_POS",
    "COUNTRY_FONT_FRACTION",
    "COUNTRY_LABEL_Y_POS",
    "DEFAULT_CROP_HEIGHT",
    "DEFAULT_CROP_WIDTH",
    "DEFAULT_RADIUS",
    "DEFAULT_WORKING_HEIGHT",
    "DEFAULT_WORKING_WIDTH",
    "DIVIDER_LINE_WIDTH",
    "DIVIDER_X_END",
    "DIVIDER_X_START",
    "DIVIDER_Y_POS",
    "GRADIENT_HEIGHT_FRACTION",
    "LETTER_SPACING_FRACTION",
    "MAX_CANVAS_SIDE",
    "MIN_LETTER_SPACING",
    "REFERENCE_CROP_HEIGHT",
    "ROAD_WIDTH_DEFAULT",
    "ROAD_WIDTH_MOTORWAY",
    "ROAD_WIDTH_PRIMARY",
    "ROAD_WIDTH_RESIDENTIAL",
    "ROAD_WIDTH_SECONDARY",
    "ROAD_WIDTH_TERTIARY",
    "ROAD_WIDTH_TRUNK",
    "ROAD_WIDTH_UNCLASSIFIED",
    "TITLE_FONT_FRACTION",
    "TITLE_Y_POS",
]

# Canvas sizes in pixels. The working canvas is drawn first, then cropped
# around its center to the poster size.
DEFAULT_WORKING_WIDTH = 5000
DEFAULT_WORKING_HEIGHT = 6000
DEFAULT_CROP_WIDTH = 3000
DEFAULT_CROP_HEIGHT = 4000
MAX_CANVAS_SIDE = 12000

# Map radius in meters
DEFAULT_RADIUS = 8000

# Points on the geodesic circle used to derive the bounding box
CIRCLE_STEPS = 64

# Gradient constants (fraction of crop height)
GRADIENT_HEIGHT_FRACTION = 0.28

# Typography positioning, fractions of crop height measured from the top
TITLE_Y_POS = 0.80
DIVIDER_Y_POS = 0.88
COUNTRY_LABEL_Y_POS = 0.89
COORDS_Y_POS = 0.93

# Font sizes, fractions of crop height
TITLE_FONT_FRACTION = 0.06
COUNTRY_FONT_FRACTION = 0.03
COORDS_FONT_FRACTION = 0.018

# Letter tracking: advance = glyph width + max(MIN, FRACTION * font size)
LETTER_SPACING_FRACTION = 0.12
MIN_LETTER_SPACING = 2

# Divider line, x fractions of crop width; width in px at the reference height
DIVIDER_X_START = 0.42
DIVIDER_X_END = 0.58
DIVIDER_LINE_WIDTH = 8
REFERENCE_CROP_HEIGHT = 4000

# Road stroke widths in pixels by highway type
ROAD_WIDTH_MOTORWAY = 5.0
ROAD_WIDTH_TRUNK = 4.2
ROAD_WIDTH_PRIMARY = 3.6
ROAD_WIDTH_SECONDARY = 3.0
ROAD_WIDTH_TERTIARY = 2.4
ROAD_WIDTH_RESIDENTIAL = 1.4
ROAD_WIDTH_UNCLASSIFIED = 1.2
ROAD_WIDTH_DEFAULT = 1.0
