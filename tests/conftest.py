"""Shared fixtures for evalex tests."""

import pytest

from evalex.core import settings
from evalex.core.configuration import EmptyConfiguration, MappingConfiguration


@pytest.fixture
def empty_config() -> EmptyConfiguration:
    """A configuration with no bindings."""
    return EmptyConfiguration()


@pytest.fixture
def mapping_config() -> MappingConfiguration:
    """A configuration with a few variables and functions bound."""
    return MappingConfiguration(
        variables={"one": 1, "two": 2, "half": 0.5, "name": "evalex", "flag": True},
        functions={
            "double": lambda args: args.items[0].value * 2,
            "first": lambda args: args.items[0],
        },
    )


@pytest.fixture(autouse=True)
def _clear_limit_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep limits from the developer's environment out of the tests."""
    monkeypatch.delenv("EVALEX_MAX_NESTING", raising=False)
    monkeypatch.delenv("EVALEX_MAX_DEPTH", raising=False)
    settings._settings_for.cache_clear()
