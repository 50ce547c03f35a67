from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MAX_DEPTH: int = 32


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable.

    Env vars are treated as trusted server configuration; unparseable values
    fall back to the default.

    """

    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except Exception:
        return int(default)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "TRUE", "yes", "YES", "on"}


@dataclass(frozen=True, slots=True)
class BuilderConfig:
    """Configuration for attribute building.

    - max_depth: deepest schema nesting accepted by the compiler and builder.
    - log_fallbacks: emit a DEBUG record for every leaf that fell back.

    """

    max_depth: int = DEFAULT_MAX_DEPTH
    log_fallbacks: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.max_depth, int) or isinstance(self.max_depth, bool):
            raise TypeError("max_depth must be an int")
        if self.max_depth < 1:
            raise ValueError("max_depth must be >= 1")

    @staticmethod
    def from_env() -> "BuilderConfig":
        """Create a config from environment variables.

        - DOCREST_MAX_SCHEMA_DEPTH (default 32)
        - DOCREST_LOG_FALLBACKS (default off)

        """

        depth = _env_int("DOCREST_MAX_SCHEMA_DEPTH", DEFAULT_MAX_DEPTH)
        if depth < 1:
            depth = DEFAULT_MAX_DEPTH
        return BuilderConfig(
            max_depth=depth,
            log_fallbacks=_env_flag("DOCREST_LOG_FALLBACKS", False),
        )
