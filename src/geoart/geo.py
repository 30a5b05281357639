"""Place-name lookup through the Nominatim geocoding service."""

from __future__ import annotations

import logging
import time
from typing import Any, cast

from geopy.geocoders import Nominatim
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from .cache import CacheType, cache_get, cache_key, cache_set
from .exceptions import GeocodingError, LocationNotFoundError


__all__ = [
    "GeocodingError",
    "LocationNotFoundError",
    "get_coordinates",
    "make_user_agent",
    "reverse_geocode",
]

logger = logging.getLogger(__name__)

GEOCODER_TIMEOUT = 10
# Nominatim usage policy: at most one request per second
RATE_LIMIT_SECONDS = 1.0


def make_user_agent(email: str) -> str:
    """Build the user agent Nominatim requires, with a contact address."""
    return f"geoart/1.0 ({email})"


def _geolocator(email: str) -> Nominatim:
    geolocator = Nominatim(user_agent=make_user_agent(email))
    geolocator.timeout = GEOCODER_TIMEOUT
    return geolocator


def get_coordinates(city: str, country: str, email: str) -> tuple[float, float]:
    """Fetch coordinates for a given city and country using geopy.

    Includes rate limiting to be respectful to the geocoding service.
    Results are cached to avoid repeated API calls.

    Args:
        city: The city name.
        country: The country name.
        email: Contact address forwarded to the geocoding service.

    Returns:
        A tuple of (latitude, longitude).

    Raises:
        GeocodingError: If the location cannot be found or a network error occurs.
    """
    key = cache_key("coords", city, country)
    cached = cache_get(key, CacheType.COORDS)
    if cached is not None:
        logger.info("Using cached coordinates for %s, %s", city, country)
        return cast("tuple[float, float]", cached)

    logger.info("Looking up coordinates for %s, %s...", city, country)
    geolocator = _geolocator(email)

    try:
        location = geolocator.geocode({"city": city, "country": country})
    except (RequestsConnectionError, Timeout) as e:
        logger.error("Network error during geocoding: %s", e)
        raise GeocodingError(f"Network error during geocoding for {city}, {country}.") from e
    except Exception as e:
        logger.error("Geocoding failed: %s", e)
        raise GeocodingError(f"Geocoding failed for {city}, {country}.") from e

    if not location:
        raise LocationNotFoundError(f"Could not find coordinates for {city}, {country}")

    logger.info("Coordinates: %s, %s", location.latitude, location.longitude)
    coords = (float(location.latitude), float(location.longitude))

    # Rate limit AFTER successful API call
    time.sleep(RATE_LIMIT_SECONDS)

    if not cache_set(key, coords, CacheType.COORDS):
        logger.warning("Failed to cache coordinates for %s", key)
    return coords


def _place_from_address(raw: dict[str, Any]) -> dict[str, str]:
    address = raw.get("address") or {}
    city = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("hamlet")
        or raw.get("display_name")
        or ""
    )
    return {"city": str(city), "country": str(address.get("country") or "")}


def reverse_geocode(lat: float, lon: float, email: str) -> tuple[str, str]:
    """Resolve coordinates to a (city, country) pair for poster labels.

    The most specific settlement name available (city, town, village,
    hamlet) is used, falling back to the full display name.

    Raises:
        GeocodingError: If the service fails or returns no usable place.
    """
    key = cache_key("place", f"{lat:.5f}", f"{lon:.5f}")
    cached = cache_get(key, CacheType.PLACE)
    if isinstance(cached, dict) and cached.get("city") and cached.get("country"):
        logger.info("Using cached place name for %s, %s", lat, lon)
        return cached["city"], cached["country"]

    logger.info("Looking up place name for %s, %s...", lat, lon)
    geolocator = _geolocator(email)

    try:
        location = geolocator.reverse((lat, lon), exactly_one=True)
    except (RequestsConnectionError, Timeout) as e:
        logger.error("Network error during reverse geocoding: %s", e)
        raise GeocodingError(f"Network error during reverse geocoding for {lat}, {lon}.") from e
    except Exception as e:
        logger.error("Reverse geocoding failed: %s", e)
        raise GeocodingError(f"Reverse geocoding failed for {lat}, {lon}.") from e

    if not location:
        raise LocationNotFoundError(f"No place found at {lat}, {lon}")

    place = _place_from_address(location.raw or {})
    if not place["city"] or not place["country"]:
        raise LocationNotFoundError(f"No city and country found at {lat}, {lon}")

    time.sleep(RATE_LIMIT_SECONDS)

    if not cache_set(key, place, CacheType.PLACE):
        logger.warning("Failed to cache place name for %s", key)
    return place["city"], place["country"]
