"""Prayer times home-screen widget core package."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("prayerwidget")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = ["__version__"]
