"""Version lookup for the evalex distribution."""

from __future__ import annotations

import tomllib
from functools import lru_cache
from importlib import metadata
from pathlib import Path

DIST_NAME = "evalex"
UNKNOWN_VERSION = "0.0.0"

# Present in a source checkout, absent from an installed wheel
_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _checkout_version() -> str | None:
    if not _PYPROJECT.is_file():
        return None
    with open(_PYPROJECT, "rb") as f:
        data = tomllib.load(f)
    project = data.get("project", {})
    if project.get("name") != DIST_NAME:
        return None
    return project.get("version")


@lru_cache(maxsize=1)
def get_version() -> str:
    """Return the evalex version.

    A source checkout reports its pyproject version, so an editable install
    stays current after a bump without reinstalling. Otherwise the installed
    distribution metadata is used.
    """
    checkout = _checkout_version()
    if checkout:
        return checkout
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return UNKNOWN_VERSION
