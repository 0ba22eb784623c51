"""
Startup configuration for the failover sink.

Values are read once from the environment (falling back to ``.env`` files) and
are immutable afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import env_float, env_int, env_seconds, env_str
from .exceptions import ConfigurationError
from .failure_recovery import DEFAULT_MAX_RETRIES, DEFAULT_SECONDS_BETWEEN_RETRY
from .redis_transport import DEFAULT_CONNECT_TIMEOUT_SECONDS, DEFAULT_KEY, DEFAULT_SOCKET_TIMEOUT_SECONDS

ENV_PREFIX = "REDIS_FAILOVER_"

RECOVERY_MODE_BACKOFF = "backoff"
RECOVERY_MODE_SINGLE_SWEEP = "single-sweep"
RECOVERY_MODES = (RECOVERY_MODE_BACKOFF, RECOVERY_MODE_SINGLE_SWEEP)


@dataclass(frozen=True)
class FailoverSettings:
    """
    Configuration for the failover sink.

    Attributes:
        endpoints: Comma separated ``host:port`` list seeding the endpoint pool
        max_retries: Bound on full-pool backoff sweeps after a failed reconnect
        seconds_between_retry: Wait between backoff sweeps
        key: Redis list receiving the records
        password: Optional Redis AUTH password
        db: Redis database number
        socket_timeout: Socket read/write timeout in seconds
        connect_timeout: Socket connect timeout in seconds
        recovery_mode: ``backoff`` (bounded multi-sweep) or ``single-sweep``
    """

    endpoints: str
    max_retries: int = DEFAULT_MAX_RETRIES
    seconds_between_retry: int = DEFAULT_SECONDS_BETWEEN_RETRY
    key: str = DEFAULT_KEY
    password: Optional[str] = None
    db: int = 0
    socket_timeout: float = DEFAULT_SOCKET_TIMEOUT_SECONDS
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    recovery_mode: str = RECOVERY_MODE_BACKOFF

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ConfigurationError.invalid_value("max_retries", self.max_retries, "must be non-negative")
        if self.seconds_between_retry < 0:
            raise ConfigurationError.invalid_value(
                "seconds_between_retry", self.seconds_between_retry, "must be non-negative"
            )
        if not self.key:
            raise ConfigurationError.missing_value("key")
        if self.db < 0:
            raise ConfigurationError.invalid_value("db", self.db, "must be non-negative")
        if self.socket_timeout <= 0 or self.connect_timeout <= 0:
            raise ConfigurationError("Socket timeouts must be positive")
        if self.recovery_mode not in RECOVERY_MODES:
            raise ConfigurationError.invalid_value(
                "recovery_mode", self.recovery_mode, f"expected one of {', '.join(RECOVERY_MODES)}"
            )


def _name(suffix: str) -> str:
    return f"{ENV_PREFIX}{suffix}"


def load_failover_settings(endpoints: Optional[str] = None) -> FailoverSettings:
    """
    Build settings from ``REDIS_FAILOVER_*`` environment variables.

    Args:
        endpoints: Endpoint list taking precedence over ``REDIS_FAILOVER_ENDPOINTS``

    Raises:
        ConfigurationError: If the endpoint list is missing or a value is malformed
    """
    if not endpoints:
        endpoints = env_str(_name("ENDPOINTS"), required=True)
    assert endpoints is not None

    return FailoverSettings(
        endpoints=endpoints,
        max_retries=env_int(_name("MAX_RETRIES"), or_value=DEFAULT_MAX_RETRIES),
        seconds_between_retry=env_seconds(_name("SECONDS_BETWEEN_RETRY"), or_value=DEFAULT_SECONDS_BETWEEN_RETRY),
        key=env_str(_name("KEY"), or_value=DEFAULT_KEY),
        password=env_str(_name("PASSWORD"), strip=False),
        db=env_int(_name("DB"), or_value=0),
        socket_timeout=env_float(_name("SOCKET_TIMEOUT"), or_value=DEFAULT_SOCKET_TIMEOUT_SECONDS),
        connect_timeout=env_float(_name("CONNECT_TIMEOUT"), or_value=DEFAULT_CONNECT_TIMEOUT_SECONDS),
        recovery_mode=env_str(_name("RECOVERY_MODE"), or_value=RECOVERY_MODE_BACKOFF).lower(),
    )


__all__ = [
    "ENV_PREFIX",
    "RECOVERY_MODES",
    "RECOVERY_MODE_BACKOFF",
    "RECOVERY_MODE_SINGLE_SWEEP",
    "FailoverSettings",
    "load_failover_settings",
]
