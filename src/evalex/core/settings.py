"""Limits applied while building and evaluating operator trees.

Configuration via environment variables:

- ``EVALEX_MAX_NESTING``: deepest parenthesis/prefix/power/call nesting the
  builder accepts (default: 64)
- ``EVALEX_MAX_DEPTH``: deepest nesting the evaluator walks (default: 256)

Values that are not positive integers are ignored with a warning. The
builder recurses once per nesting level, so ``max_nesting`` is capped at
what the interpreter's recursion limit can carry. The evaluator runs on an
explicit stack and has no such cap, but ``max_depth`` is never allowed
below ``max_nesting`` so that every tree the builder accepts can be
evaluated.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from functools import lru_cache

logger = logging.getLogger(__name__)

DEFAULT_MAX_NESTING = 64
DEFAULT_MAX_DEPTH = 256

# Builder frames per nesting level: group, expr, one per precedence tier,
# unary, primary.
_FRAMES_PER_LEVEL = 12
_FRAME_HEADROOM = 100


@dataclass(frozen=True)
class EvalSettings:
    """Recursion limits for the builder and the evaluator."""

    max_nesting: int = DEFAULT_MAX_NESTING
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        if self.max_nesting < 1:
            raise ValueError(f"max_nesting must be positive, got {self.max_nesting}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")

    @classmethod
    def from_env(cls) -> EvalSettings:
        """Read limits from the environment, falling back to the defaults."""
        return _settings_for(
            os.environ.get("EVALEX_MAX_NESTING"),
            os.environ.get("EVALEX_MAX_DEPTH"),
            sys.getrecursionlimit(),
        )


def nesting_ceiling() -> int:
    """Deepest nesting the builder can recurse through under the current recursion limit."""
    return max(1, (sys.getrecursionlimit() - _FRAME_HEADROOM) // _FRAMES_PER_LEVEL)


def clamp_nesting(requested: int) -> int:
    """Cap a nesting limit at :func:`nesting_ceiling`."""
    ceiling = nesting_ceiling()
    if requested > ceiling:
        logger.warning("Nesting limit %d exceeds the recursion limit, using %d", requested, ceiling)
        return ceiling
    return requested


@lru_cache(maxsize=32)
def _settings_for(raw_nesting: str | None, raw_depth: str | None, recursion_limit: int) -> EvalSettings:
    # Cached per raw value so each bad setting is only reported once
    nesting = clamp_nesting(_positive_int("EVALEX_MAX_NESTING", raw_nesting, DEFAULT_MAX_NESTING))
    depth = _positive_int("EVALEX_MAX_DEPTH", raw_depth, DEFAULT_MAX_DEPTH)
    if depth < nesting:
        logger.warning("EVALEX_MAX_DEPTH=%d is below the nesting limit, using %d", depth, nesting)
        depth = nesting
    return EvalSettings(max_nesting=nesting, max_depth=depth)


def _positive_int(name: str, raw: str | None, default: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %d", name, raw, default)
        return default
    if value < 1:
        logger.warning("Ignoring %s=%d: must be positive, using %d", name, value, default)
        return default
    return value


def get_settings() -> EvalSettings:
    """Return the settings currently in effect.

    Read on every call so changes to the environment apply to the next
    build or evaluation.
    """
    return EvalSettings.from_env()
