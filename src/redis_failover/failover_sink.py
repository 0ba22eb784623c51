"""
Record sink delivering to one of several interchangeable Redis endpoints.

The sink composes the endpoint pool, the connection supervisor and a recovery
policy. It never raises into its host: configuration problems leave it inert,
and every delivery failure is logged and reported as ``False``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .connection_supervisor import ConnectionSupervisor
from .endpoint_pool import EndpointPool
from .endpoint_pool_helpers import RandomSource
from .exceptions import ConfigurationError, NotConnectedError, RecordEncodingError, WriteError
from .failure_recovery import FailureRecoveryLoop, RecoveryPolicy, RetryState, SingleSweepRecovery
from .record_codec import encode_record
from .redis_transport import RedisConnectionFactory
from .settings import RECOVERY_MODE_SINGLE_SWEEP, FailoverSettings
from .transport import ConnectionFactory

logger = logging.getLogger(__name__)


def build_recovery_policy(settings: FailoverSettings, supervisor: ConnectionSupervisor) -> RecoveryPolicy:
    if settings.recovery_mode == RECOVERY_MODE_SINGLE_SWEEP:
        return SingleSweepRecovery(supervisor)
    retry_state = RetryState(
        max_attempts=settings.max_retries,
        interval_seconds=settings.seconds_between_retry,
    )
    return FailureRecoveryLoop(supervisor, retry_state)


def build_connection_factory(settings: FailoverSettings) -> RedisConnectionFactory:
    return RedisConnectionFactory(
        settings.key,
        password=settings.password,
        db=settings.db,
        socket_timeout=settings.socket_timeout,
        connect_timeout=settings.connect_timeout,
    )


class FailoverSink:
    """Writes records through a failover connection, self-healing after write failures."""

    def __init__(
        self,
        settings: FailoverSettings,
        *,
        connection_factory: Optional[ConnectionFactory] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.settings = settings
        self._connection_factory = connection_factory
        self._rng = rng
        self.supervisor: Optional[ConnectionSupervisor] = None
        self.recovery: Optional[RecoveryPolicy] = None
        self._closed = False

    @property
    def active(self) -> bool:
        return self.supervisor is not None and not self._closed

    async def start(self) -> bool:
        """
        Activate the sink and make the first connection attempt.

        Returns:
            True when a connection is live. A malformed endpoint list is
            logged and leaves the sink inert.
        """
        if self.supervisor is None:
            try:
                pool = EndpointPool.build(self.settings.endpoints, rng=self._rng)
            except ConfigurationError:
                logger.exception("Error activating failover sink; sink stays inert")
                return False
            factory = self._connection_factory or build_connection_factory(self.settings)
            self.supervisor = ConnectionSupervisor(pool, factory)
            self.recovery = build_recovery_policy(self.settings, self.supervisor)
            logger.info("Failover sink activated with %d endpoint(s)", len(pool))
        elif self._closed and self.recovery is not None:
            self.recovery.reset()

        self._closed = False
        try:
            return await self.supervisor.connect()
        except Exception:
            logger.exception("Unexpected error during initial connect")
            return False

    async def write(self, record: Any) -> bool:
        """
        Deliver one record.

        Returns:
            True when the record was written. A failed write triggers recovery
            so later writes can succeed; the failed record itself is dropped.
        """
        supervisor = self.supervisor
        recovery = self.recovery
        if supervisor is None or recovery is None or self._closed:
            return False
        if recovery.exhausted:
            logger.debug("Dropping record; reconnection attempts are exhausted")
            return False

        try:
            payload = encode_record(record)
        except RecordEncodingError as exc:
            logger.warning("Dropping record that cannot be encoded: %s", exc)
            return False

        if not supervisor.is_connected and not await self._reconnect(supervisor, recovery):
            return False

        try:
            await supervisor.write(payload)
        except NotConnectedError:
            logger.debug("Dropping record; connection was released concurrently")
            return False
        except WriteError as exc:
            logger.warning("%s; forcing reconnect", exc)
            await recovery.handle_write_failure(getattr(exc, "generation", None))
            return False
        return True

    async def _reconnect(self, supervisor: ConnectionSupervisor, recovery: RecoveryPolicy) -> bool:
        """One sweep for a writer that found no live handle; refused once recovery is exhausted."""
        async with supervisor.lock:
            # A recovery may have exhausted while this writer waited for the lock
            if recovery.exhausted or self._closed:
                logger.debug("Dropping record; reconnection attempts are exhausted")
                return False
            try:
                connected = await supervisor.connect_locked()
            except Exception:
                logger.exception("Unexpected error while connecting; dropping record")
                return False
        if not connected:
            logger.debug("Dropping record; no endpoint accepted a connection")
        return connected

    def reset(self) -> None:
        """Clear an exhausted recovery so automatic retries resume."""
        if self.recovery is not None:
            self.recovery.reset()
            logger.info("Failover sink recovery state reset")

    async def close(self) -> None:
        """Interrupt any backoff in progress and release the connection."""
        self._closed = True
        if self.recovery is not None:
            self.recovery.close()
        if self.supervisor is not None:
            await self.supervisor.force_disconnect()

    def get_status(self) -> Dict[str, Any]:
        status: Dict[str, Any] = {"active": self.active}
        if self.supervisor is not None:
            status.update(self.supervisor.get_status())
        if self.recovery is not None:
            status.update(self.recovery.get_status())
        return status

    async def __aenter__(self) -> "FailoverSink":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


__all__ = ["FailoverSink", "build_connection_factory", "build_recovery_policy"]
