"""geoart - Render stylized street-map posters around any point on Earth.

This package fetches roads, water and parks from OpenStreetMap mirrors,
projects them onto a pixel canvas and composites a themed PNG poster.
"""

from importlib.metadata import PackageNotFoundError, version


try:
    __version__ = version("geoart")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
