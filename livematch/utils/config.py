"""Runtime settings for the live match officiating desk.

``Settings()`` is always valid; :meth:`Settings.from_env` overlays values
from ``LIVEMATCH_*`` environment variables.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ..exceptions import ConfigurationError
from .constants import (
    DEFAULT_BACKEND_URL,
    DEFAULT_HOST,
    DEFAULT_PORT,
    HEARTBEAT_INTERVAL_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
    TICK_INTERVAL_SECONDS,
)

ENV_PREFIX = "LIVEMATCH_"


@dataclass(frozen=True)
class Settings:
    """Configuration for the officiating desk.

    Attributes:
        backend_url: Base URL of the match resource on the REST backend.
        request_timeout_seconds: Per-request timeout for backend calls.
        tick_interval_seconds: How often a running clock re-derives itself.
        heartbeat_interval_seconds: How often a running clock is saved.
        snapshot_dir: Directory for local JSON snapshots, ``None`` disables them.
        log_level: Level name passed to :func:`configure_logging`.
        host: Interface the web app binds to.
        port: Port the web app listens on.
    """

    backend_url: str = DEFAULT_BACKEND_URL
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    tick_interval_seconds: float = TICK_INTERVAL_SECONDS
    heartbeat_interval_seconds: float = HEARTBEAT_INTERVAL_SECONDS
    snapshot_dir: Optional[str] = None
    log_level: str = "INFO"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``LIVEMATCH_*`` variables, falling back to defaults.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed or is
                not positive.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def _get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value and value.strip() else None

        def _positive(name: str, default: float, cast=float):
            raw = _get(name)
            if raw is None:
                return default
            try:
                value = cast(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc
            if value <= 0:
                raise ConfigurationError(f"{ENV_PREFIX}{name} must be positive, got {raw!r}")
            return value

        return cls(
            backend_url=(_get("BACKEND_URL") or defaults.backend_url).rstrip("/"),
            request_timeout_seconds=_positive("REQUEST_TIMEOUT", defaults.request_timeout_seconds),
            tick_interval_seconds=_positive("TICK_INTERVAL", defaults.tick_interval_seconds),
            heartbeat_interval_seconds=_positive("HEARTBEAT_INTERVAL", defaults.heartbeat_interval_seconds),
            snapshot_dir=_get("SNAPSHOT_DIR"),
            log_level=(_get("LOG_LEVEL") or defaults.log_level).upper(),
            host=_get("HOST") or defaults.host,
            port=_positive("PORT", defaults.port, cast=int),
        )
