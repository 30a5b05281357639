"""Poster compositing: area fills, road strokes, gradient, typography, crop."""

from __future__ import annotations

import io
import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import matplotlib.colors as mcolors
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .config import Theme
from .exceptions import GeoArtError, InvalidBoundsError, InvalidInputError, RenderError
from .features import Feature, GeometryKind, highway_type, is_park, is_water
from .fonts import FontSet, load_fonts
from .projection import Projector
from .render_constants import (
    DEFAULT_CROP_HEIGHT,
    DEFAULT_CROP_WIDTH,
    MAX_CANVAS_SIDE,
    REFERENCE_CROP_HEIGHT,
    ROAD_WIDTH_DEFAULT,
    ROAD_WIDTH_MOTORWAY,
    ROAD_WIDTH_PRIMARY,
    ROAD_WIDTH_RESIDENTIAL,
    ROAD_WIDTH_SECONDARY,
    ROAD_WIDTH_TERTIARY,
    ROAD_WIDTH_TRUNK,
    ROAD_WIDTH_UNCLASSIFIED,
)
from .styles import StyleConfig


__all__ = [
    "HIGHWAY_CLASS_MAP",
    "HIGHWAY_WIDTHS",
    "PosterRenderer",
    "RoadStyle",
    "format_coordinates",
    "to_rgb",
]

logger = logging.getLogger(__name__)

RGB = tuple[int, int, int]
PixelPath = list[tuple[float, float]]

HIGHWAY_CLASS_MAP: dict[str, str] = {
    "motorway": "motorway",
    "motorway_link": "motorway",
    "trunk": "primary",
    "trunk_link": "primary",
    "primary": "primary",
    "primary_link": "primary",
    "secondary": "secondary",
    "secondary_link": "secondary",
    "tertiary": "tertiary",
    "tertiary_link": "tertiary",
    "residential": "residential",
    "living_street": "residential",
}

HIGHWAY_WIDTHS: dict[str, float] = {
    "motorway": ROAD_WIDTH_MOTORWAY,
    "trunk": ROAD_WIDTH_TRUNK,
    "primary": ROAD_WIDTH_PRIMARY,
    "secondary": ROAD_WIDTH_SECONDARY,
    "tertiary": ROAD_WIDTH_TERTIARY,
    "residential": ROAD_WIDTH_RESIDENTIAL,
    "unclassified": ROAD_WIDTH_UNCLASSIFIED,
}

# Digits kept after the decimal point in the coordinate label
COORD_DECIMALS = 4


def to_rgb(color: str) -> RGB:
    """Convert any matplotlib color spec (usually ``#RRGGBB``) to 8-bit RGB."""
    r, g, b = mcolors.to_rgb(color)
    return (round(r * 255), round(g * 255), round(b * 255))


def _truncate_number(value: float, decimals: int = COORD_DECIMALS) -> str:
    """Cut a number to ``decimals`` fractional digits without rounding or padding."""
    text = f"{abs(value):.10f}".rstrip("0").rstrip(".")
    whole, _, fraction = text.partition(".")
    fraction = fraction[:decimals]
    return f"{whole}.{fraction}" if fraction else whole


def format_coordinates(lat: float, lon: float) -> str:
    """Format a center point as ``48.8566° N / 2.3522° E``.

    Values are truncated, never rounded, and short values stay as they are.
    """
    lat_text = f"{_truncate_number(lat)}° {'N' if lat >= 0 else 'S'}"
    lon_text = f"{_truncate_number(lon)}° {'E' if lon >= 0 else 'W'}"
    return f"{lat_text} / {lon_text}"


@dataclass(frozen=True)
class RoadStyle:
    """Road rendering style for a classified highway."""

    road_class: str
    color: str
    width: float


def _check_canvas_size(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise InvalidBoundsError(f"Canvas size must be positive, got {width}x{height}")
    if width > MAX_CANVAS_SIDE or height > MAX_CANVAS_SIDE:
        raise InvalidInputError(
            f"Canvas {width}x{height} exceeds the {MAX_CANVAS_SIDE}px limit per side"
        )


class PosterRenderer:
    """Renders map posters for one theme.

    The renderer holds no per-poster state: every call to ``render`` builds
    its own canvas and passes it through the stages in order.
    """

    def __init__(
        self,
        theme: Theme,
        style: StyleConfig | None = None,
        fonts: FontSet | None = None,
    ) -> None:
        self.theme = theme
        self.style = style or StyleConfig()
        self.fonts = fonts or load_fonts()

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify_road(self, highway: str) -> RoadStyle:
        """Classify a highway value into a color and stroke width."""
        road_class = HIGHWAY_CLASS_MAP.get(highway, "default")
        if road_class == "motorway":
            color = self.theme.road_motorway
        elif road_class == "primary":
            color = self.theme.road_primary
        elif road_class == "secondary":
            color = self.theme.road_secondary
        elif road_class == "tertiary":
            color = self.theme.road_tertiary
        elif road_class == "residential":
            color = self.theme.road_residential
        else:
            color = self.theme.road_default

        width = HIGHWAY_WIDTHS.get(highway, ROAD_WIDTH_DEFAULT) * self.style.road_width_scale
        return RoadStyle(road_class=road_class, color=color, width=width)

    def area_color(self, feature: Feature) -> str | None:
        """Return the fill color for an area feature, or None to skip it."""
        if is_water(feature):
            return self.theme.water
        if is_park(feature):
            return self.theme.parks
        return None

    # ------------------------------------------------------------------
    # Geometry helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _project_path(coords: Iterable[Sequence[float]], project: Projector) -> PixelPath:
        path = []
        for coord in coords:
            x, y = project(coord[0], coord[1])
            if not (math.isfinite(x) and math.isfinite(y)):
                raise RenderError(f"Projection produced a non-finite point for {tuple(coord)}")
            path.append((x, y))
        return path

    def _polygon_rings(self, feature: Feature, project: Projector) -> list[PixelPath]:
        geometry = feature.geometry
        kind = feature.kind
        if kind is GeometryKind.POLYGON:
            polygons = [geometry]
        elif kind is GeometryKind.MULTIPOLYGON:
            polygons = list(geometry.geoms)
        else:
            raise RenderError(f"Cannot fill a {kind.value} feature")

        rings = []
        for polygon in polygons:
            rings.append(self._project_path(polygon.exterior.coords, project))
            rings.extend(self._project_path(ring.coords, project) for ring in polygon.interiors)
        return [ring for ring in rings if len(ring) >= 3]

    def _line_paths(self, feature: Feature, project: Projector) -> list[PixelPath]:
        geometry = feature.geometry
        kind = feature.kind
        if kind is GeometryKind.LINESTRING:
            lines = [geometry]
        elif kind is GeometryKind.MULTILINESTRING:
            lines = list(geometry.geoms)
        else:
            raise RenderError(f"Cannot stroke a {kind.value} feature")
        return [self._project_path(line.coords, project) for line in lines]

    # ------------------------------------------------------------------
    # Drawing stages
    # ------------------------------------------------------------------

    @staticmethod
    def fill_even_odd(canvas: Image.Image, rings: list[PixelPath], color: RGB) -> None:
        """Fill rings on the canvas using the even-odd rule.

        Each ring is rasterized into its own mask and the masks are XORed,
        so a pixel is painted when it lies inside an odd number of rings.
        """
        if not rings:
            return
        xs = [x for ring in rings for x, _ in ring]
        ys = [y for ring in rings for _, y in ring]
        x0 = max(0, math.floor(min(xs)))
        y0 = max(0, math.floor(min(ys)))
        x1 = min(canvas.width, math.ceil(max(xs)) + 1)
        y1 = min(canvas.height, math.ceil(max(ys)) + 1)
        if x0 >= x1 or y0 >= y1:
            return

        size = (x1 - x0, y1 - y0)
        mask = np.zeros((size[1], size[0]), dtype=bool)
        for ring in rings:
            ring_image = Image.new("1", size, 0)
            ImageDraw.Draw(ring_image).polygon([(x - x0, y - y0) for x, y in ring], fill=1)
            mask ^= np.asarray(ring_image, dtype=bool)

        if not mask.any():
            return
        canvas.paste(color, (x0, y0, x1, y1), Image.fromarray(mask.astype(np.uint8) * 255))

    @staticmethod
    def stroke_path(draw: ImageDraw.ImageDraw, path: PixelPath, color: RGB, width: float) -> None:
        """Stroke a polyline with round joins and round caps."""
        if len(path) < 2:
            return
        line_width = max(1, round(width))
        draw.line(path, fill=color, width=line_width, joint="curve")
        if line_width > 2:
            radius = line_width / 2
            for x, y in (path[0], path[-1]):
                draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=color)

    def draw_areas(
        self, canvas: Image.Image, features: Sequence[Feature], project: Projector
    ) -> int:
        """Fill water and park polygons in input order. Returns the count drawn."""
        drawn = 0
        for feature in features:
            if not feature.kind.is_area:
                continue
            color = self.area_color(feature)
            if color is None:
                continue
            self.fill_even_odd(canvas, self._polygon_rings(feature, project), to_rgb(color))
            drawn += 1
        return drawn

    def draw_roads(
        self, canvas: Image.Image, features: Sequence[Feature], project: Projector
    ) -> int:
        """Stroke roads, narrowest first, so major roads sit on top at crossings."""
        roads = [
            (feature, self.classify_road(highway_type(feature)))
            for feature in features
            if feature.kind.is_line and highway_type(feature)
        ]
        roads.sort(key=lambda item: item[1].width)

        draw = ImageDraw.Draw(canvas)
        for feature, style in roads:
            color = to_rgb(style.color)
            for path in self._line_paths(feature, project):
                self.stroke_path(draw, path, color, style.width)
        return len(roads)

    def draw_map(
        self,
        features: Sequence[Feature],
        width: int,
        height: int,
        project: Projector,
    ) -> Image.Image:
        """Draw background, area fills and roads onto a new working canvas."""
        _check_canvas_size(width, height)
        canvas = Image.new("RGB", (width, height), to_rgb(self.theme.bg))
        areas = self.draw_areas(canvas, features, project)
        roads = self.draw_roads(canvas, features, project)
        logger.info("Drew %d areas and %d roads on a %dx%d canvas", areas, roads, width, height)
        return canvas

    @staticmethod
    def crop_center(canvas: Image.Image, width: int, height: int) -> Image.Image:
        """Cut a width x height window out of the middle of the canvas.

        Raises:
            InvalidInputError: If the window is larger than the canvas.
        """
        if width > canvas.width or height > canvas.height:
            raise InvalidInputError(
                f"Crop {width}x{height} does not fit the {canvas.width}x{canvas.height} canvas"
            )
        left = (canvas.width - width) // 2
        top = (canvas.height - height) // 2
        return canvas.crop((left, top, left + width, top + height))

    def apply_gradient(self, image: Image.Image) -> None:
        """Fade the bottom of the image into the theme's gradient color."""
        fade_height = int(image.height * self.style.gradient_strength)
        if fade_height <= 0:
            return

        alpha = np.linspace(0, 255, fade_height).round().astype(np.uint8)
        overlay = np.zeros((fade_height, image.width, 4), dtype=np.uint8)
        overlay[..., :3] = to_rgb(self.theme.gradient_color)
        overlay[..., 3] = alpha[:, np.newaxis]

        top = image.height - fade_height
        region = image.crop((0, top, image.width, image.height)).convert("RGBA")
        blended = Image.alpha_composite(region, Image.fromarray(overlay))
        image.paste(blended.convert("RGB"), (0, top))

    def _letter_spacing(self, size: int) -> float:
        return max(self.style.min_letter_spacing, size * self.style.letter_spacing_fraction)

    def _tracked_width(self, text: str, font: ImageFont.FreeTypeFont, spacing: float) -> float:
        widths = [font.getlength(ch) for ch in text]
        return sum(widths) + spacing * max(0, len(text) - 1)

    def draw_tracked_text(
        self,
        image: Image.Image,
        text: str,
        weight: str,
        size_fraction: float,
        y_fraction: float,
    ) -> None:
        """Draw uppercase text centered horizontally, one glyph at a time.

        Each glyph advances by its own width plus a fixed spacing
        proportional to the font size. Text that would overflow is scaled
        down to fit 90% of the width.
        """
        text = text.upper()
        if not text:
            return
        size = max(1, math.floor(image.height * size_fraction))
        font = self.fonts.get_font(weight, size)
        spacing = self._letter_spacing(size)
        total = self._tracked_width(text, font, spacing)

        max_width = image.width * 0.9
        if total > max_width:
            size = max(1, math.floor(size * max_width / total))
            font = self.fonts.get_font(weight, size)
            spacing = self._letter_spacing(size)
            total = self._tracked_width(text, font, spacing)

        draw = ImageDraw.Draw(image)
        color = to_rgb(self.theme.text)
        x = (image.width - total) / 2
        y = math.floor(image.height * y_fraction)
        for ch in text:
            draw.text((x, y), ch, font=font, fill=color, anchor="la")
            x += font.getlength(ch) + spacing

    def draw_divider(self, image: Image.Image) -> None:
        """Draw the short rule between the title and the country line."""
        scale = image.height / REFERENCE_CROP_HEIGHT
        width = max(1, round(self.style.divider_line_width * scale))
        y = image.height * self.style.divider_y_pos
        path = [
            (image.width * self.style.divider_x_start, y),
            (image.width * self.style.divider_x_end, y),
        ]
        self.stroke_path(ImageDraw.Draw(image), path, to_rgb(self.theme.text), width)

    def add_typography(self, image: Image.Image, title: str, country: str, coords: str) -> None:
        """Add title, divider, country and coordinates to the cropped poster."""
        style = self.style
        self.draw_tracked_text(image, title, "bold", style.title_font_fraction, style.title_y_pos)
        self.draw_divider(image)
        self.draw_tracked_text(
            image, country, "light", style.country_font_fraction, style.country_label_y_pos
        )
        self.draw_tracked_text(
            image, coords, "regular", style.coords_font_fraction, style.coords_y_pos
        )

    @staticmethod
    def encode(image: Image.Image) -> bytes:
        """Encode the poster as PNG."""
        buffer = io.BytesIO()
        image.save(buffer, format="PNG", optimize=True)
        return buffer.getvalue()

    def render(
        self,
        features: Sequence[Feature],
        width: int,
        height: int,
        project: Projector,
        title: str,
        country: str,
        coords: str,
        crop_size: tuple[int, int] = (DEFAULT_CROP_WIDTH, DEFAULT_CROP_HEIGHT),
    ) -> bytes:
        """Render the full poster and return PNG bytes.

        Args:
            features: Features to draw, in (lon, lat).
            width: Working canvas width in pixels.
            height: Working canvas height in pixels.
            project: Mapping from (lon, lat) to working canvas pixels.
            title: Poster title, usually the city name.
            country: Country line.
            coords: Preformatted coordinate line.
            crop_size: Final (width, height) of the poster.

        Raises:
            InvalidInputError: If a canvas is oversized or the crop does not fit.
            RenderError: If drawing or encoding fails.
        """
        try:
            canvas = self.draw_map(features, width, height, project)
            poster = self.crop_center(canvas, *crop_size)
            del canvas
            self.apply_gradient(poster)
            self.add_typography(poster, title, country, coords)
            return self.encode(poster)
        except GeoArtError:
            raise
        except (OSError, ValueError, TypeError, MemoryError) as e:
            logger.exception("Poster rendering failed: %s", e)
            raise RenderError(f"Poster rendering failed: {e}") from e
