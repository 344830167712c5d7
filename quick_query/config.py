"""
Runtime configuration from environment variables.

Only the network boundary is configurable. Units, currencies and color
formats are compiled into the vocabulary tables on purpose.

    QUICK_QUERY_RATES_URL     exchange rate endpoint
    QUICK_QUERY_DEBOUNCE_MS   delay before a currency request is sent (0-2000)
    QUICK_QUERY_HTTP_TIMEOUT  seconds per rate request
    QUICK_QUERY_LOG_LEVEL     logging level name for the entry points
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from .currency import DEFAULT_RATES_URL

logger = logging.getLogger(__name__)

MAX_DEBOUNCE_MS = 2000


@dataclass(frozen=True)
class EngineConfig:
    rates_url: str = DEFAULT_RATES_URL
    debounce_ms: int = 300
    http_timeout: float = 5.0
    log_level: str = "INFO"

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Read settings, falling back to defaults on unparseable values."""
        env = os.environ if environ is None else environ
        defaults = cls()

        debounce_ms = _read_number(env, "QUICK_QUERY_DEBOUNCE_MS", defaults.debounce_ms, int)
        timeout = _read_number(env, "QUICK_QUERY_HTTP_TIMEOUT", defaults.http_timeout, float)

        return cls(
            rates_url=env.get("QUICK_QUERY_RATES_URL", defaults.rates_url),
            debounce_ms=max(0, min(MAX_DEBOUNCE_MS, debounce_ms)),
            http_timeout=timeout if timeout > 0 else defaults.http_timeout,
            log_level=env.get("QUICK_QUERY_LOG_LEVEL", defaults.log_level).upper(),
        )


def _read_number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number), using %s", key, raw, default)
        return default
