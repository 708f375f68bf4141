"""
ptb.version — version of the installed `apex-ptb` distribution.

The value comes from the package metadata written at install time. A source tree
used without installing reports `<BASE_VERSION>+local`.
"""

from __future__ import annotations

from importlib import metadata as importlib_metadata

DIST_NAME = "apex-ptb"
BASE_VERSION = "0.1.0"


def package_version(dist: str = DIST_NAME) -> str:
    try:
        return importlib_metadata.version(dist)
    except importlib_metadata.PackageNotFoundError:
        return f"{BASE_VERSION}+local"


__version__ = package_version()


__all__ = ["__version__", "package_version", "BASE_VERSION", "DIST_NAME"]
