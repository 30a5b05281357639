"""Feature acquisition from a list of equivalent Overpass API mirrors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, cast

import requests
from requests.exceptions import RequestException

from .cache import CacheType, cache_get, cache_key, cache_set
from .config import AcquisitionSettings
from .exceptions import DataUnavailableError
from .features import Feature
from .osm import features_from_overpass
from .projection import GeoPoint


__all__ = [
    "EndpointAttempt",
    "build_overpass_query",
    "fetch_features",
    "format_meters",
    "query_endpoint",
]

logger = logging.getLogger(__name__)

QUERY_TIMEOUT_SECONDS = 180


def format_meters(radius: float) -> str:
    """Format a radius in plain decimal notation, at most centimeter precision."""
    return f"{radius:.2f}".rstrip("0").rstrip(".")


def build_overpass_query(center: GeoPoint, radius: float) -> str:
    """Build one Overpass QL query for roads, water and parks around a point.

    Child nodes and member ways of every match are requested too, so the
    response carries all the geometry needed to build the features.
    """
    around = f"(around:{format_meters(radius)},{center.lat},{center.lon})"
    return "\n".join(
        [
            f"[out:json][timeout:{QUERY_TIMEOUT_SECONDS}];",
            "(",
            f'  way["highway"]{around};',
            f'  way["natural"="water"]{around};',
            f'  way["leisure"="park"]{around};',
            f'  relation["natural"="water"]{around};',
            f'  relation["leisure"="park"]{around};',
            ");",
            "(._;>;);",
            "out body qt;",
        ]
    )


@dataclass(frozen=True)
class EndpointAttempt:
    """Outcome of one request to one endpoint: a payload or an error."""

    endpoint: str
    payload: dict[str, Any] | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.payload is not None


def query_endpoint(
    endpoint: str,
    query: str,
    settings: AcquisitionSettings,
    session: requests.Session | None = None,
) -> EndpointAttempt:
    """POST the query to one endpoint and report what happened.

    Transport errors, non-success statuses and unparsable bodies are
    returned as failed attempts instead of raised.
    """
    http = session or requests
    try:
        response = http.post(
            endpoint,
            data={"data": query},
            headers={"User-Agent": settings.user_agent},
            timeout=settings.timeout,
        )
    except RequestException as e:
        return EndpointAttempt(endpoint, error=e)

    if not response.ok:
        body = response.text[:500] if response.text else ""
        error = requests.HTTPError(
            f"Overpass error {response.status_code} from {endpoint}\n{body}".rstrip(),
            response=response,
        )
        return EndpointAttempt(endpoint, error=error)

    try:
        payload = response.json()
    except ValueError as e:
        return EndpointAttempt(endpoint, error=ValueError(f"Invalid JSON from {endpoint}: {e}"))

    if not isinstance(payload, dict) or not isinstance(payload.get("elements"), list):
        return EndpointAttempt(
            endpoint, error=ValueError(f"Unexpected Overpass payload from {endpoint}")
        )
    return EndpointAttempt(endpoint, payload=payload)


def fetch_features(
    center: GeoPoint,
    radius: float,
    settings: AcquisitionSettings | None = None,
    session: requests.Session | None = None,
) -> list[Feature]:
    """Fetch roads, water and parks within ``radius`` meters of ``center``.

    Endpoints are tried in order, each at most once. The first one that
    answers wins and the rest are never contacted.

    Args:
        center: Center of the area.
        radius: Radius in meters.
        settings: Endpoint list, timeout and cache switch.
        session: Optional requests session to send through.

    Returns:
        The normalized features.

    Raises:
        DataUnavailableError: If every endpoint failed. The last failure is
            attached as ``cause``.
    """
    settings = settings or AcquisitionSettings()
    key = cache_key("overpass", f"{center.lat:.6f}", f"{center.lon:.6f}", format_meters(radius))

    if settings.use_cache:
        cached = cache_get(key, CacheType.OVERPASS)
        if isinstance(cached, dict):
            logger.info("Using cached map data for %s, %s", center.lat, center.lon)
            return features_from_overpass(cached)

    query = build_overpass_query(center, radius)
    last_error: Exception | None = None

    for endpoint in settings.endpoints:
        logger.info("Fetching map data from %s", endpoint)
        attempt = query_endpoint(endpoint, query, settings, session)
        if not attempt.ok:
            logger.warning("Failed to fetch from %s, trying next: %s", endpoint, attempt.error)
            last_error = attempt.error
            continue

        payload = cast("dict[str, Any]", attempt.payload)
        if settings.use_cache and not cache_set(key, payload, CacheType.OVERPASS):
            logger.warning("Failed to cache map data for %s", key)
        return features_from_overpass(payload)

    if last_error is None:
        raise DataUnavailableError("No Overpass endpoints configured.")
    raise DataUnavailableError(
        f"All Overpass endpoints failed. Last error: {last_error}", cause=last_error
    ) from last_error
