"""Command-line interface for geoart."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn

from .api import DEFAULT_THEME, PosterRequest, generate_poster
from .config import (
    AcquisitionSettings,
    ThemeStore,
    generate_output_filename,
)
from .exceptions import (
    DataUnavailableError,
    GeoArtError,
    GeocodingError,
    InvalidInputError,
    ThemeValidationError,
)
from .render_constants import DEFAULT_CROP_HEIGHT, DEFAULT_CROP_WIDTH, DEFAULT_RADIUS
from .styles import StyleConfig, load_style_pack


__all__ = ["cli", "main"]

logger = logging.getLogger(__name__)


def _print_examples() -> None:
    """Print usage examples."""
    print(
        """
Map Poster Generator
====================

Usage:
  geoart --lat <lat> --lon <lon> --email <you@example.com> [options]
  geoart --city <city> --country <country> --email <you@example.com> [options]

Examples:
  geoart --lat 48.8566 --lon 2.3522 -e me@example.com -t noir -r 1000
  geoart -c "Venice" -C "Italy" -e me@example.com -t blueprint -r 4000
  geoart -c "Tokyo" -C "Japan" -e me@example.com -t japanese_ink -W 1500 -H 2000

  # List themes
  geoart --list-themes

Options:
  --lat, --lon      Center coordinates in degrees
  --city, -c        City name (used when no coordinates are given)
  --country, -C     Country name
  --email, -e       Contact address sent to the geocoding service (required)
  --theme, -t       Theme name (default: neon_cyberpunk)
  --radius, -r      Map radius in meters (default: 8000)
  --width, -W       Poster width in pixels (default: 3000)
  --height, -H      Poster height in pixels (default: 4000)
  --output, -o      Output PNG path (default: posters/<city>_<theme>_<time>.png)
  --style-pack      JSON file with layout settings
  --list-themes     List all available themes

Generated posters are saved to the 'posters/' directory.
"""
    )


def _list_themes(themes: ThemeStore) -> None:
    """List all available themes with descriptions."""
    if not themes.names:
        print("No themes found.")
        return

    print("\nAvailable Themes:")
    print("-" * 60)
    for theme_name in themes.names:
        try:
            theme = themes.load(theme_name)
            display_name, description = theme.name, theme.description
        except ThemeValidationError as e:
            display_name, description = theme_name, f"(invalid: {e})"

        print(f"  {theme_name}")
        print(f"    {display_name}")
        if description:
            print(f"    {description}")
        print()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="geoart",
        description="Render a stylized street-map poster around a point",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  geoart --lat 48.8566 --lon 2.3522 --email me@example.com
  geoart --city Tokyo --country Japan --email me@example.com --theme midnight_blue
  geoart --list-themes
        """,
    )

    parser.add_argument("--lat", type=float, help="Center latitude in degrees")
    parser.add_argument("--lon", type=float, help="Center longitude in degrees")
    parser.add_argument("--city", "-c", type=str, help="City name")
    parser.add_argument("--country", "-C", type=str, help="Country name")
    parser.add_argument(
        "--email",
        "-e",
        type=str,
        default="",
        help="Contact email forwarded to the geocoding service",
    )
    parser.add_argument(
        "--theme",
        "-t",
        type=str,
        default=DEFAULT_THEME,
        help=f"Theme name (default: {DEFAULT_THEME})",
    )
    parser.add_argument(
        "--radius",
        "-r",
        type=float,
        default=DEFAULT_RADIUS,
        help=f"Map radius in meters (default: {DEFAULT_RADIUS})",
    )
    parser.add_argument(
        "--width",
        "-W",
        type=int,
        default=DEFAULT_CROP_WIDTH,
        help=f"Poster width in pixels (default: {DEFAULT_CROP_WIDTH})",
    )
    parser.add_argument(
        "--height",
        "-H",
        type=int,
        default=DEFAULT_CROP_HEIGHT,
        help=f"Poster height in pixels (default: {DEFAULT_CROP_HEIGHT})",
    )
    parser.add_argument("--output", "-o", type=str, help="Output PNG path")
    parser.add_argument("--style-pack", type=str, help="JSON style pack file")
    parser.add_argument(
        "--use-cache",
        action="store_true",
        help="Reuse cached map data for repeated renders of the same area",
    )
    parser.add_argument(
        "--list-themes",
        action="store_true",
        help="List all available themes",
    )
    parser.add_argument(
        "--cache-stats",
        action="store_true",
        help="Show cache statistics and exit",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear all cached data and exit",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="store_true",
        help="Show version and exit",
    )

    return parser


def _handle_info_commands(parsed: argparse.Namespace, themes: ThemeStore) -> int | None:
    """Handle informational commands that exit early.

    Returns:
        Exit code if handled, None if not handled.
    """
    if parsed.version:
        from . import __version__

        print(f"geoart {__version__}")
        return 0

    if parsed.list_themes:
        _list_themes(themes)
        return 0

    if parsed.cache_stats:
        from .cache import get_cache_stats

        stats = get_cache_stats()
        print("\nCache Statistics:")
        print("-" * 60)
        print(f"  Total files: {stats['total_files']}")
        print(f"  Total size: {stats['total_size_mb']} MB")
        print("\n  By type:")
        for type_name, type_stats in stats["by_type"].items():
            print(f"    {type_name}: {type_stats['files']} files, {type_stats['size_mb']} MB")
        return 0

    if parsed.clear_cache:
        from .cache import clear_cache

        deleted = clear_cache()
        print(f"Cleared {deleted} cache files.")
        return 0

    return None


def _load_style(parsed: argparse.Namespace) -> StyleConfig | int:
    """Load the style pack if one was given.

    Returns:
        The style configuration, or an int exit code on error.
    """
    if not parsed.style_pack:
        return StyleConfig()

    style_pack_path = Path(parsed.style_pack).expanduser()
    if style_pack_path.suffix.lower() != ".json":
        print("Error: Style pack must be a JSON file.")
        return 1
    if not style_pack_path.is_file():
        print("Error: Style pack file not found.")
        return 1
    try:
        return load_style_pack(str(style_pack_path))
    except (OSError, ValueError, TypeError) as exc:
        print(f"Error: Failed to load style pack: {exc}")
        return 1


def cli(args: list[str] | None = None) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    parser = create_parser()
    parsed = parser.parse_args(args)

    if (len(sys.argv) == 1 and args is None) or args == []:
        _print_examples()
        return 0

    themes = ThemeStore()

    info_result = _handle_info_commands(parsed, themes)
    if info_result is not None:
        return info_result

    if parsed.theme not in themes:
        print(f"Error: Theme '{parsed.theme}' not found.")
        print(f"Available themes: {', '.join(themes.names)}")
        return 1

    style = _load_style(parsed)
    if isinstance(style, int):
        return style

    request = PosterRequest(
        lat=parsed.lat,
        lon=parsed.lon,
        city=parsed.city,
        country=parsed.country,
        radius=parsed.radius,
        theme_name=parsed.theme,
        width=parsed.width,
        height=parsed.height,
        email=parsed.email,
    )

    try:
        request.validate()
    except InvalidInputError as e:
        print(f"Error: {e}\n")
        _print_examples()
        return 1

    print("=" * 50)
    print("Map Poster Generator")
    print("=" * 50)

    settings = AcquisitionSettings.from_env(use_cache=parsed.use_cache)

    try:
        png = generate_poster(request, themes=themes, settings=settings, style=style)
    except DataUnavailableError as e:
        print(f"\n✗ Map data source unreachable: {e}")
        return 1
    except InvalidInputError as e:
        print(f"\n✗ Bad input: {e}")
        return 1
    except GeocodingError as e:
        print(f"\n✗ Geocoding service unavailable: {e}")
        return 1
    except GeoArtError as e:
        print(f"\n✗ Rendering failed: {e}")
        logger.debug("Render failure", exc_info=True)
        return 1

    title = parsed.city or f"{parsed.lat}_{parsed.lon}"
    output_file = (
        Path(parsed.output).expanduser()
        if parsed.output
        else generate_output_filename(title, parsed.theme)
    )
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_bytes(png)

    print("\n" + "=" * 50)
    print(f"✓ Poster saved as {output_file}")
    print("=" * 50)
    return 0


def main() -> NoReturn:
    """Main entry point."""
    sys.exit(cli())


if __name__ == "__main__":
    main()
