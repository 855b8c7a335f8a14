"""Edge runtime compatibility scanner for JavaScript/TypeScript projects."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("edge-compat")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

__all__ = ["__version__"]
