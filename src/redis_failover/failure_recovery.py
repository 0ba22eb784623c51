"""
Recovery policies run when a write over the live connection fails.

``FailureRecoveryLoop`` is the reference policy: force a disconnect, sweep the
pool, and when the sweep fails repeat full sweeps ``max_attempts`` times at a
fixed interval before giving up for good. ``SingleSweepRecovery`` is the
simpler variant that reconnects with one sweep and never gives up.

Both policies hold the supervisor lock for the whole recovery, backoff wait
included, so no two recoveries run against the same pool at once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from .connection_state import RecoveryState
from .connection_supervisor import ConnectionSupervisor
from .exceptions import ConfigurationError, ExhaustionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 10
DEFAULT_SECONDS_BETWEEN_RETRY = 10


@dataclass
class RetryState:
    """Counts full-pool sweep failures against a fixed budget."""

    max_attempts: int = DEFAULT_MAX_RETRIES
    interval_seconds: float = DEFAULT_SECONDS_BETWEEN_RETRY
    attempts: int = 0

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ConfigurationError.invalid_value("max_attempts", self.max_attempts, "must be non-negative")
        if self.interval_seconds < 0:
            raise ConfigurationError.invalid_value("interval_seconds", self.interval_seconds, "must be non-negative")

    @property
    def budget_spent(self) -> bool:
        return self.attempts >= self.max_attempts


class RecoveryPolicy(Protocol):
    @property
    def state(self) -> RecoveryState: ...

    @property
    def exhausted(self) -> bool: ...

    async def handle_write_failure(self, failed_generation: Optional[int] = None) -> bool: ...

    def reset(self) -> None: ...

    def close(self) -> None: ...

    def get_status(self) -> Dict[str, Any]: ...


def _already_recovered(supervisor: ConnectionSupervisor, failed_generation: Optional[int]) -> bool:
    """True when another task reconnected after the failed write was issued."""
    if failed_generation is None or not supervisor.is_connected:
        return False
    return supervisor.generation != failed_generation


class FailureRecoveryLoop:
    """Bounded, interval-spaced multi-sweep reconnection after a write failure."""

    def __init__(self, supervisor: ConnectionSupervisor, retry_state: Optional[RetryState] = None):
        self._supervisor = supervisor
        self.retry_state = retry_state if retry_state is not None else RetryState()
        self._state = RecoveryState.IDLE
        self._interrupted = asyncio.Event()
        self.last_error: Optional[ExhaustionError] = None

    @property
    def state(self) -> RecoveryState:
        return self._state

    @property
    def exhausted(self) -> bool:
        return self._state is RecoveryState.EXHAUSTED

    async def handle_write_failure(self, failed_generation: Optional[int] = None) -> bool:
        """
        Disconnect and reconnect after a failed write.

        Args:
            failed_generation: Supervisor generation the failed write used; when
                another task already reconnected past it, nothing is torn down

        Returns:
            True when a live connection exists afterwards. The failed write
            itself is not retried.
        """
        if self.exhausted or self._interrupted.is_set():
            return False

        async with self._supervisor.lock:
            if self.exhausted or self._interrupted.is_set():
                return False
            if _already_recovered(self._supervisor, failed_generation):
                logger.debug("Connection already re-established by a concurrent recovery")
                return True

            self._state = RecoveryState.RECOVERING
            try:
                await self._supervisor.disconnect_locked()
                recovered = await self._reconnect_locked()
            except asyncio.CancelledError:
                self._exhaust("recovery cancelled")
                raise
            except Exception:
                logger.exception("Unexpected error during reconnection")
                self._exhaust("unexpected error during reconnection")
                return False

            if recovered:
                self._state = RecoveryState.IDLE
                self.retry_state.attempts = 0
                return True
            return False

    async def _reconnect_locked(self) -> bool:
        retry = self.retry_state
        connected = await self._supervisor.connect_locked()
        while not connected:
            if retry.budget_spent:
                self._exhaust(f"all endpoints failed after {retry.attempts} retries")
                return False

            retry.attempts += 1
            logger.warning(
                "Reconnect sweep failed; retry %d/%d in %ss",
                retry.attempts,
                retry.max_attempts,
                retry.interval_seconds,
            )
            if await self._wait_backoff(retry.interval_seconds):
                self._exhaust("backoff interrupted")
                return False
            connected = await self._supervisor.connect_locked()
        return True

    async def _wait_backoff(self, interval_seconds: float) -> bool:
        """Wait between sweeps; returns True when interrupted by ``close``."""
        if interval_seconds <= 0:
            await asyncio.sleep(0)
            return self._interrupted.is_set()
        try:
            await asyncio.wait_for(self._interrupted.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def _exhaust(self, reason: str) -> None:
        self._state = RecoveryState.EXHAUSTED
        self.last_error = ExhaustionError(
            f"Giving up on reconnection: {reason}",
            attempts=self.retry_state.attempts,
            pool_size=len(self._supervisor.pool),
        )
        logger.error("%s; staying disconnected until reset", self.last_error)

    def reset(self) -> None:
        """Operator reset: clear exhaustion and restore the full retry budget."""
        self._state = RecoveryState.IDLE
        self.retry_state.attempts = 0
        self.last_error = None
        self._interrupted.clear()

    def close(self) -> None:
        """Interrupt any backoff wait in progress and refuse further recoveries."""
        self._interrupted.set()

    def get_status(self) -> Dict[str, Any]:
        return {
            "recovery_state": self._state.value,
            "retry_attempts": self.retry_state.attempts,
            "max_retries": self.retry_state.max_attempts,
            "seconds_between_retry": self.retry_state.interval_seconds,
            "last_error": str(self.last_error) if self.last_error else None,
        }


class SingleSweepRecovery:
    """Reconnect with a single pool sweep; never becomes exhausted."""

    def __init__(self, supervisor: ConnectionSupervisor):
        self._supervisor = supervisor
        self._state = RecoveryState.IDLE
        self._closed = False

    @property
    def state(self) -> RecoveryState:
        return self._state

    @property
    def exhausted(self) -> bool:
        return False

    async def handle_write_failure(self, failed_generation: Optional[int] = None) -> bool:
        if self._closed:
            return False
        async with self._supervisor.lock:
            if _already_recovered(self._supervisor, failed_generation):
                return True
            self._state = RecoveryState.RECOVERING
            try:
                await self._supervisor.disconnect_locked()
                return await self._supervisor.connect_locked()
            except Exception:
                logger.exception("Unexpected error during reconnection")
                return False
            finally:
                self._state = RecoveryState.IDLE

    def reset(self) -> None:
        self._closed = False

    def close(self) -> None:
        self._closed = True

    def get_status(self) -> Dict[str, Any]:
        return {"recovery_state": self._state.value}


__all__ = [
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_SECONDS_BETWEEN_RETRY",
    "FailureRecoveryLoop",
    "RecoveryPolicy",
    "RetryState",
    "SingleSweepRecovery",
]
