"""Render request surface: validate a request and run the poster pipeline."""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass

import requests
from tqdm import tqdm

from .config import AcquisitionSettings, ThemeStore
from .exceptions import InvalidInputError, LocationNotFoundError
from .geo import get_coordinates, reverse_geocode
from .overpass import fetch_features
from .projection import GeoPoint, edges_from_center_radius, make_projector
from .render import PosterRenderer, format_coordinates
from .render_constants import (
    DEFAULT_CROP_HEIGHT,
    DEFAULT_CROP_WIDTH,
    DEFAULT_RADIUS,
    DEFAULT_WORKING_HEIGHT,
    DEFAULT_WORKING_WIDTH,
    MAX_CANVAS_SIDE,
)
from .styles import StyleConfig


__all__ = [
    "DEFAULT_THEME",
    "PosterRequest",
    "ResolvedLocation",
    "generate_poster",
    "resolve_location",
    "working_canvas_size",
]

logger = logging.getLogger(__name__)

DEFAULT_THEME = "neon_cyberpunk"


@dataclass(frozen=True)
class PosterRequest:
    """Everything needed to render one poster.

    Either ``lat``/``lon`` or ``city``/``country`` must be given. ``width``
    and ``height`` are the size of the final poster in pixels.
    """

    lat: float | None = None
    lon: float | None = None
    city: str | None = None
    country: str | None = None
    radius: float = DEFAULT_RADIUS
    theme_name: str = DEFAULT_THEME
    width: int = DEFAULT_CROP_WIDTH
    height: int = DEFAULT_CROP_HEIGHT
    email: str = ""

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def has_place_name(self) -> bool:
        return bool(self.city) and bool(self.country)

    def validate(self) -> None:
        """Check request fields that need no network access.

        Raises:
            InvalidInputError: If the request cannot be rendered.
        """
        if not self.has_coordinates and not self.has_place_name:
            raise InvalidInputError("Send lat and lon, or city and country names.")
        if not self.email:
            raise InvalidInputError("An email is required for geocoding attribution.")
        if not math.isfinite(self.radius) or self.radius <= 0:
            raise InvalidInputError(
                f"Radius must be a positive number of meters, got {self.radius}"
            )
        if self.width <= 0 or self.height <= 0:
            raise InvalidInputError(
                f"Poster size must be positive, got {self.width}x{self.height}"
            )
        working_width, working_height = working_canvas_size(self.width, self.height)
        if max(working_width, working_height) > MAX_CANVAS_SIDE:
            raise InvalidInputError(
                f"Poster {self.width}x{self.height} needs a {working_width}x{working_height} "
                f"working canvas, above the {MAX_CANVAS_SIDE}px limit per side"
            )


@dataclass(frozen=True)
class ResolvedLocation:
    """Center point and poster labels for a request."""

    point: GeoPoint
    city: str
    country: str


def working_canvas_size(crop_width: int, crop_height: int) -> tuple[int, int]:
    """Scale the working canvas with the poster size.

    The default 3000x4000 poster is cut from a 5000x6000 canvas; other
    poster sizes keep that ratio so the same ground area is shown.
    """
    width = math.ceil(crop_width * DEFAULT_WORKING_WIDTH / DEFAULT_CROP_WIDTH)
    height = math.ceil(crop_height * DEFAULT_WORKING_HEIGHT / DEFAULT_CROP_HEIGHT)
    return width, height


def resolve_location(request: PosterRequest) -> ResolvedLocation:
    """Find the center point and the labels for the poster.

    Coordinates win when both forms are given; the place name is then looked
    up from them so the labels match the map.

    Raises:
        InvalidInputError: If the lookup finds no usable location.
        GeocodingError: If the lookup service cannot be reached.
    """
    try:
        if request.has_coordinates:
            point = GeoPoint(float(request.lat), float(request.lon))  # type: ignore[arg-type]
            city, country = reverse_geocode(point.lat, point.lon, request.email)
        else:
            city, country = str(request.city), str(request.country)
            lat, lon = get_coordinates(city, country, request.email)
            point = GeoPoint(lat, lon)
    except LocationNotFoundError as e:
        raise InvalidInputError(f"Could not resolve the requested location: {e}") from e

    return ResolvedLocation(point=point, city=city, country=country)


def generate_poster(
    request: PosterRequest,
    themes: ThemeStore | None = None,
    settings: AcquisitionSettings | None = None,
    style: StyleConfig | None = None,
    session: requests.Session | None = None,
    show_progress: bool = True,
) -> bytes:
    """Render a poster for a request and return the PNG bytes.

    Args:
        request: The poster request.
        themes: Theme registry; a default store is built when omitted.
        settings: Overpass endpoints and timeouts.
        style: Layout settings for the compositor.
        session: Optional requests session for the map-data calls.
        show_progress: Whether to display a progress bar (TTY only).

    Raises:
        InvalidInputError: Bad request or unresolvable location.
        GeocodingError: The place lookup service failed.
        ThemeValidationError: Unknown or malformed theme.
        DataUnavailableError: Every map-data endpoint failed.
        InvalidBoundsError: Degenerate projection.
        RenderError: Drawing or encoding failed.
    """
    request.validate()
    themes = themes or ThemeStore()
    # Fail on a bad theme before any network call
    theme = themes.load(request.theme_name)

    working_width, working_height = working_canvas_size(request.width, request.height)
    show_progress = show_progress and sys.stderr.isatty()

    with tqdm(
        total=4,
        desc="Generating poster",
        unit="step",
        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt}",
        disable=not show_progress,
    ) as pbar:
        pbar.set_description("Resolving location")
        location = resolve_location(request)
        pbar.update(1)
        logger.info(
            "Generating poster for %s, %s at %s, %s (radius %sm, theme %s)",
            location.city,
            location.country,
            location.point.lat,
            location.point.lon,
            request.radius,
            request.theme_name,
        )

        # Bounds are checked before any map data is fetched
        pbar.set_description("Projecting")
        box = edges_from_center_radius(location.point, request.radius)
        project = make_projector(box, working_width, working_height)
        pbar.update(1)

        pbar.set_description("Downloading map data")
        features = fetch_features(location.point, request.radius, settings, session)
        pbar.update(1)

        pbar.set_description("Rendering")
        renderer = PosterRenderer(theme, style)
        png = renderer.render(
            features,
            working_width,
            working_height,
            project,
            title=location.city,
            country=location.country,
            coords=format_coordinates(location.point.lat, location.point.lon),
            crop_size=(request.width, request.height),
        )
        pbar.update(1)

    logger.info("Poster rendered: %d bytes", len(png))
    return png
