"""Runtime settings resolved from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sitewarden.exceptions import ConfigError

DEFAULT_FETCH_TIMEOUT = 10.0

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def default_workers() -> int:
    """Scanner pool size sized to available parallelism (same rule as ThreadPoolExecutor)."""
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass(frozen=True)
class Settings:
    """Process-wide knobs; CLI options override these."""

    workers: int
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    user_site: bool = False

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from ``SITEWARDEN_*`` variables.

        Supported:
            SITEWARDEN_WORKERS        — positive int (default: cpu_count + 4, max 32)
            SITEWARDEN_FETCH_TIMEOUT  — positive float seconds (default: 10)
            SITEWARDEN_USER_SITE      — 1/0, true/false (default: false)
        """
        env = os.environ if environ is None else environ

        workers = default_workers()
        raw = env.get("SITEWARDEN_WORKERS")
        if raw:
            try:
                workers = int(raw)
            except ValueError:
                raise ConfigError(f"SITEWARDEN_WORKERS must be an integer, got {raw!r}") from None
            if workers < 1:
                raise ConfigError(f"SITEWARDEN_WORKERS must be >= 1, got {workers}")

        timeout = DEFAULT_FETCH_TIMEOUT
        raw = env.get("SITEWARDEN_FETCH_TIMEOUT")
        if raw:
            try:
                timeout = float(raw)
            except ValueError:
                raise ConfigError(
                    f"SITEWARDEN_FETCH_TIMEOUT must be a number, got {raw!r}"
                ) from None
            if timeout <= 0:
                raise ConfigError(f"SITEWARDEN_FETCH_TIMEOUT must be > 0, got {timeout}")

        raw = env.get("SITEWARDEN_USER_SITE", "").strip().lower()
        if raw in _TRUE:
            user_site = True
        elif raw in _FALSE:
            user_site = False
        else:
            raise ConfigError(f"SITEWARDEN_USER_SITE must be a boolean, got {raw!r}")

        return cls(workers=workers, fetch_timeout=timeout, user_site=user_site)
