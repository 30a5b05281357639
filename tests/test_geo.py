"""Tests for the geo module."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from geopy.exc import GeocoderTimedOut
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from geoart.cache import CacheType
from geoart.geo import (
    GeocodingError,
    LocationNotFoundError,
    get_coordinates,
    make_user_agent,
    reverse_geocode,
)


def _reverse_location(address: dict[str, str], display_name: str = "") -> MagicMock:
    location = MagicMock()
    location.raw = {"address": address, "display_name": display_name}
    return location


class TestUserAgent:
    def test_user_agent_carries_email(self) -> None:
        assert make_user_agent("me@example.com") == "geoart/1.0 (me@example.com)"

    def test_nominatim_built_with_email(self) -> None:
        """Test that the contact address reaches the geocoder."""
        location = MagicMock(latitude=1.0, longitude=2.0)
        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
            patch("geoart.geo.cache_set", return_value=True),
            patch("geoart.geo.time.sleep"),
        ):
            mock_nominatim.return_value.geocode.return_value = location
            get_coordinates("Paris", "France", "me@example.com")

            mock_nominatim.assert_called_once_with(user_agent="geoart/1.0 (me@example.com)")


class TestGetCoordinates:
    """Tests for get_coordinates function."""

    def test_successful_geocoding(self) -> None:
        """Test successful geocoding returns coordinates."""
        mock_location = MagicMock()
        mock_location.latitude = 51.5074
        mock_location.longitude = -0.1278

        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
            patch("geoart.geo.cache_set", return_value=True),
            patch("geoart.geo.time.sleep") as mock_sleep,
        ):
            mock_geolocator = MagicMock()
            mock_geolocator.geocode.return_value = mock_location
            mock_nominatim.return_value = mock_geolocator

            result = get_coordinates("London", "UK", "me@example.com")

            assert result == (51.5074, -0.1278)
            mock_geolocator.geocode.assert_called_once_with({"city": "London", "country": "UK"})
            mock_sleep.assert_called_once()

    def test_uses_cached_coordinates(self) -> None:
        """Test that cached coordinates are returned without API call."""
        cached_coords = (40.7128, -74.0060)

        with (
            patch("geoart.geo.cache_get", return_value=cached_coords),
            patch("geoart.geo.Nominatim") as mock_nominatim,
        ):
            result = get_coordinates("New York", "USA", "me@example.com")

            assert result == cached_coords
            mock_nominatim.assert_not_called()

    def test_raises_on_location_not_found(self) -> None:
        """Test that GeocodingError is raised when location not found."""
        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
        ):
            mock_nominatim.return_value.geocode.return_value = None

            with pytest.raises(LocationNotFoundError, match="Could not find coordinates"):
                get_coordinates("NonexistentCity", "FakeCountry", "me@example.com")

    @pytest.mark.parametrize(
        "error",
        [Timeout("Connection timed out"), RequestsConnectionError("No connection")],
    )
    def test_raises_on_network_error(self, error: Exception) -> None:
        """Test that transport failures are reported as network errors."""
        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
        ):
            mock_nominatim.return_value.geocode.side_effect = error

            with pytest.raises(GeocodingError, match="Network error"):
                get_coordinates("Tokyo", "Japan", "me@example.com")

    def test_raises_on_unexpected_error(self) -> None:
        """Test that GeocodingError is raised on unexpected geocoding errors."""
        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
        ):
            mock_nominatim.return_value.geocode.side_effect = GeocoderTimedOut("unavailable")

            with pytest.raises(GeocodingError, match="Geocoding failed"):
                get_coordinates("Berlin", "Germany", "me@example.com")

    def test_caches_result_after_successful_lookup(self) -> None:
        """Test that successful geocoding results are cached."""
        mock_location = MagicMock()
        mock_location.latitude = 48.8566
        mock_location.longitude = 2.3522

        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
            patch("geoart.geo.cache_set") as mock_cache_set,
            patch("geoart.geo.time.sleep"),
        ):
            mock_nominatim.return_value.geocode.return_value = mock_location

            get_coordinates("Paris", "France", "me@example.com")

            mock_cache_set.assert_called_once()
            call_args = mock_cache_set.call_args
            assert call_args[0][0] == "coords_paris_france"
            assert call_args[0][1] == (48.8566, 2.3522)
            assert call_args[0][2] is CacheType.COORDS


class TestReverseGeocode:
    """Tests for reverse_geocode function."""

    @pytest.mark.parametrize(
        ("address", "expected_city"),
        [
            ({"city": "Paris", "town": "x", "country": "France"}, "Paris"),
            ({"town": "Annecy", "village": "x", "country": "France"}, "Annecy"),
            ({"village": "Giverny", "country": "France"}, "Giverny"),
            ({"hamlet": "Le Bourg", "country": "France"}, "Le Bourg"),
        ],
    )
    def test_settlement_precedence(self, address: dict[str, str], expected_city: str) -> None:
        """Test that the most specific settlement name is used."""
        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
            patch("geoart.geo.cache_set", return_value=True),
            patch("geoart.geo.time.sleep"),
        ):
            mock_nominatim.return_value.reverse.return_value = _reverse_location(address)

            assert reverse_geocode(48.0, 2.0, "me@example.com") == (expected_city, "France")
            mock_nominatim.return_value.reverse.assert_called_once_with(
                (48.0, 2.0), exactly_one=True
            )

    def test_falls_back_to_display_name(self) -> None:
        location = _reverse_location({"country": "Norway"}, display_name="Svalbard")
        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
            patch("geoart.geo.cache_set", return_value=True),
            patch("geoart.geo.time.sleep"),
        ):
            mock_nominatim.return_value.reverse.return_value = location

            assert reverse_geocode(78.2, 15.6, "me@example.com") == ("Svalbard", "Norway")

    def test_missing_country_raises(self) -> None:
        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
        ):
            mock_nominatim.return_value.reverse.return_value = _reverse_location(
                {"city": "Nowhere"}
            )

            with pytest.raises(GeocodingError, match="No city and country"):
                reverse_geocode(0.0, 0.0, "me@example.com")

    def test_no_result_raises(self) -> None:
        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
        ):
            mock_nominatim.return_value.reverse.return_value = None

            with pytest.raises(LocationNotFoundError, match="No place found"):
                reverse_geocode(0.0, 0.0, "me@example.com")

    def test_network_error_raises(self) -> None:
        with (
            patch("geoart.geo.Nominatim") as mock_nominatim,
            patch("geoart.geo.cache_get", return_value=None),
        ):
            mock_nominatim.return_value.reverse.side_effect = Timeout("slow")

            with pytest.raises(GeocodingError, match="Network error") as excinfo:
                reverse_geocode(0.0, 0.0, "me@example.com")

        assert not isinstance(excinfo.value, LocationNotFoundError)

    def test_uses_cached_place(self) -> None:
        with (
            patch(
                "geoart.geo.cache_get",
                return_value={"city": "Paris", "country": "France"},
            ) as mock_cache_get,
            patch("geoart.geo.Nominatim") as mock_nominatim,
        ):
            assert reverse_geocode(48.8566, 2.3522, "me@example.com") == ("Paris", "France")

            mock_nominatim.assert_not_called()
            assert mock_cache_get.call_args[0] == ("place_48.85660_2.35220", CacheType.PLACE)
