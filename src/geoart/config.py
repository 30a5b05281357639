"""Configuration, theme loading and path management."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import matplotlib.colors as mcolors

from .exceptions import ThemeValidationError


__all__ = [
    "DEFAULT_OVERPASS_ENDPOINTS",
    "REQUIRED_THEME_KEYS",
    "AcquisitionSettings",
    "Theme",
    "ThemeStore",
    "ThemeValidationError",
    "generate_output_filename",
    "get_available_themes",
    "get_fonts_dir",
    "get_package_dir",
    "get_posters_dir",
    "get_themes_dir",
    "load_theme",
]

logger = logging.getLogger(__name__)

# Color roles every theme must define
REQUIRED_THEME_KEYS = frozenset(
    {
        "bg",
        "text",
        "gradient_color",
        "water",
        "parks",
        "road_motorway",
        "road_primary",
        "road_secondary",
        "road_tertiary",
        "road_residential",
        "road_default",
    }
)

DEFAULT_OVERPASS_ENDPOINTS: tuple[str, ...] = (
    "https://overpass-api.de/api/interpreter",
    "https://overpass.kumi.systems/api/interpreter",
    "https://overpass.nchc.org.tw/api/interpreter",
)


def get_package_dir() -> Path:
    """Get the package installation directory."""
    return Path(__file__).parent


def get_themes_dir() -> Path:
    """Get the themes directory path."""
    # Check for themes in package data first, then fall back to cwd
    package_themes = get_package_dir() / "data" / "themes"
    if package_themes.exists():
        return package_themes

    cwd_themes = Path.cwd() / "themes"
    if cwd_themes.exists():
        return cwd_themes

    return package_themes


def get_fonts_dir() -> Path:
    """Get the fonts directory path."""
    package_fonts = get_package_dir() / "data" / "fonts"
    if package_fonts.exists():
        return package_fonts

    cwd_fonts = Path.cwd() / "fonts"
    if cwd_fonts.exists():
        return cwd_fonts

    return package_fonts


def get_posters_dir() -> Path:
    """Get the posters output directory, creating it if necessary."""
    posters_dir = Path.cwd() / "posters"
    posters_dir.mkdir(parents=True, exist_ok=True)
    return posters_dir


@dataclass(frozen=True)
class Theme:
    """Immutable set of color roles used to paint one poster."""

    bg: str
    text: str
    gradient_color: str
    water: str
    parks: str
    road_motorway: str
    road_primary: str
    road_secondary: str
    road_tertiary: str
    road_residential: str
    road_default: str
    name: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any], theme_name: str = "") -> Theme:
        """Build a theme from parsed JSON, validating every color role.

        Raises:
            ThemeValidationError: If a role is missing or is not a color.
        """
        missing_keys = REQUIRED_THEME_KEYS - data.keys()
        if missing_keys:
            raise ThemeValidationError(
                f"Theme '{theme_name}' is missing required keys: {', '.join(sorted(missing_keys))}"
            )

        colors: dict[str, str] = {}
        for key in sorted(REQUIRED_THEME_KEYS):
            value = data[key]
            if not isinstance(value, str) or not mcolors.is_color_like(value):
                raise ThemeValidationError(
                    f"Theme '{theme_name}' has an invalid color for '{key}': {value!r}"
                )
            colors[key] = value

        return cls(
            **colors,
            name=str(data.get("name") or theme_name),
            description=str(data.get("description", "")),
        )


def load_theme(theme_name: str, themes_dir: Path | None = None) -> Theme:
    """Load a theme from a JSON file in the themes directory.

    Args:
        theme_name: The name of the theme (without .json extension).
        themes_dir: Directory to read from; defaults to ``get_themes_dir()``.

    Returns:
        The validated theme.

    Raises:
        ThemeValidationError: If the file is missing, unreadable, not a JSON
            object, or lacks a required color role.
    """
    themes_dir = themes_dir or get_themes_dir()
    theme_file = themes_dir / f"{theme_name}.json"

    if not theme_file.is_file():
        raise ThemeValidationError(f"Theme file '{theme_file}' not found.")

    try:
        with theme_file.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ThemeValidationError(f"Theme file '{theme_file}' could not be read: {e}") from e

    if not isinstance(data, dict):
        raise ThemeValidationError(f"Theme file '{theme_file}' is not a JSON object.")

    theme = Theme.from_dict(data, theme_name)
    logger.info("Loaded theme: %s", theme.name)
    return theme


def get_available_themes(themes_dir: Path | None = None) -> list[str]:
    """Scan the themes directory and return a list of available theme names.

    Returns:
        A sorted list of theme names (without .json extension).
        Empty list if themes directory doesn't exist.
    """
    themes_dir = themes_dir or get_themes_dir()
    if not themes_dir.exists():
        return []

    return sorted(f.stem for f in themes_dir.glob("*.json"))


class ThemeStore:
    """Read-only registry of theme names to theme files.

    Built once per process and handed to every render call. Each request
    loads its own ``Theme`` from disk, so a broken file fails only the
    requests that ask for it.
    """

    def __init__(self, themes_dir: Path | None = None) -> None:
        self._themes_dir = themes_dir or get_themes_dir()
        self._paths = {
            name: self._themes_dir / f"{name}.json"
            for name in get_available_themes(self._themes_dir)
        }

    @property
    def themes_dir(self) -> Path:
        return self._themes_dir

    @property
    def names(self) -> list[str]:
        return sorted(self._paths)

    def __contains__(self, name: object) -> bool:
        return name in self._paths

    def load(self, name: str) -> Theme:
        """Load the named theme.

        Raises:
            ThemeValidationError: If the name is unknown or the file is invalid.
        """
        if name not in self._paths:
            raise ThemeValidationError(
                f"Unknown theme '{name}'. Available themes: {', '.join(self.names)}"
            )
        return load_theme(name, self._themes_dir)


@dataclass(frozen=True)
class AcquisitionSettings:
    """Settings for fetching map features from Overpass mirrors."""

    endpoints: tuple[str, ...] = DEFAULT_OVERPASS_ENDPOINTS
    timeout: float = 180.0
    use_cache: bool = False
    user_agent: str = "geoart/1.0"

    @classmethod
    def from_env(cls, **overrides: Any) -> AcquisitionSettings:
        """Build settings from ``GEOART_OVERPASS_*`` environment variables."""
        values: dict[str, Any] = {}
        endpoints = os.environ.get("GEOART_OVERPASS_ENDPOINTS")
        if endpoints:
            values["endpoints"] = tuple(e.strip() for e in endpoints.split(",") if e.strip())
        timeout = os.environ.get("GEOART_OVERPASS_TIMEOUT")
        if timeout:
            values["timeout"] = float(timeout)
        values.update(overrides)
        return cls(**values)


def _sanitize_filename(name: str) -> str:
    """Sanitize string for use in filenames across platforms.

    Args:
        name: The string to sanitize.

    Returns:
        A safe filename string.
    """
    sanitized = re.sub(r'[<>:"/\\|?*\s,\'°.]', "_", name)
    sanitized = sanitized.strip("._ ")
    sanitized = re.sub(r"_+", "_", sanitized)

    # Windows reserved names
    reserved = {"CON", "PRN", "AUX", "NUL"}
    reserved.update(f"COM{i}" for i in range(1, 10))
    reserved.update(f"LPT{i}" for i in range(1, 10))

    if sanitized.upper() in reserved:
        sanitized = f"_{sanitized}"

    return sanitized or "unnamed"


def generate_output_filename(title: str, theme_name: str) -> Path:
    """Generate a unique PNG output filename with title, theme, and datetime.

    Args:
        title: The poster title (usually the city name).
        theme_name: The theme name.

    Returns:
        The full path to the output file.
    """
    posters_dir = get_posters_dir()
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    title_slug = _sanitize_filename(title.lower())
    theme_slug = _sanitize_filename(theme_name.lower())
    return posters_dir / f"{title_slug}_{theme_slug}_{timestamp}.png"
