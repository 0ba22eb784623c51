"""
Single-connection supervisor with endpoint rotation.

The supervisor holds at most one live handle. ``connect`` sweeps the endpoint
pool starting at its cursor until an endpoint accepts a connection or every
endpoint has been tried once. Connecting and disconnecting are serialized by
one ``asyncio.Lock`` per supervisor; writes go straight to the live handle.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from .connection_state import ConnectionState
from .connection_supervisor_helpers import SupervisorMetrics
from .endpoint_pool import Endpoint, EndpointPool
from .exceptions import NotConnectedError, WriteError
from .transport import CLOSE_ERRORS, CONNECT_ERRORS, WRITE_ERRORS, ConnectionFactory, ConnectionHandle

logger = logging.getLogger(__name__)


class ConnectionSupervisor:
    """Owns the single live connection and the rotation over the endpoint pool."""

    def __init__(self, pool: EndpointPool, connection_factory: ConnectionFactory):
        self._pool = pool
        self._factory = connection_factory
        self._handle: Optional[ConnectionHandle] = None
        self._lock = asyncio.Lock()
        self._generation = 0
        self.metrics = SupervisorMetrics()

    @property
    def pool(self) -> EndpointPool:
        return self._pool

    @property
    def lock(self) -> asyncio.Lock:
        """Exclusive lock guarding rotation, connect and disconnect."""
        return self._lock

    @property
    def generation(self) -> int:
        """Incremented on every successful connect; identifies the live handle."""
        return self._generation

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.CONNECTED if self.is_connected else ConnectionState.DISCONNECTED

    @property
    def current_endpoint(self) -> Optional[Endpoint]:
        """Endpoint of the live handle, or ``None`` when disconnected."""
        if self._handle is None:
            return None
        return self._pool.current()

    async def connect(self) -> bool:
        """Sweep the pool under the lock; see ``connect_locked``."""
        async with self._lock:
            return await self.connect_locked()

    async def connect_locked(self) -> bool:
        """
        Establish a connection, rotating through the pool on failure.

        The caller must hold ``lock``. Tries ``pool.current()`` first and
        advances the cursor after each failure. At most ``len(pool)`` factory
        calls are made; a failed sweep leaves the cursor where it started.

        Returns:
            True when a handle is live (existing or new), False when every
            endpoint in the pool refused the connection
        """
        if self._handle is not None:
            return True

        start_index = self._pool.index
        while True:
            endpoint = self._pool.current()
            self.metrics.connect_attempts += 1
            try:
                handle = await self._factory.open(endpoint.host, endpoint.port)
            except CONNECT_ERRORS as exc:
                logger.debug("Connect to %s failed (%s), trying the next endpoint", endpoint, exc)
            else:
                self._handle = handle
                self._generation += 1
                self.metrics.connections_opened += 1
                logger.info("Connected to %s", endpoint)
                return True

            self._pool.advance()
            if self._pool.cycled_back_to_start(start_index):
                self.metrics.failed_sweeps += 1
                logger.warning("Connect failed on all %d endpoints, no more hosts to try", len(self._pool))
                return False

    async def force_disconnect(self) -> None:
        """Release the live handle under the lock; see ``disconnect_locked``."""
        async with self._lock:
            await self.disconnect_locked()

    async def disconnect_locked(self) -> None:
        """
        Release the live handle without moving the pool cursor.

        The caller must hold ``lock``. Idempotent when already disconnected.
        Close failures are logged and the handle is dropped regardless.
        """
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        endpoint = self._pool.current()
        try:
            await handle.close()
        except CLOSE_ERRORS as exc:
            logger.warning("Error closing connection to %s: %s", endpoint, exc)
        finally:
            self.metrics.connections_closed += 1
        logger.debug("Disconnected from %s", endpoint)

    async def write(self, record: Any) -> None:
        """
        Write one record over the live handle.

        Raises:
            NotConnectedError: If no handle is live; never connects implicitly
            WriteError: If the handle failed; carries ``endpoint`` and ``generation``
        """
        handle = self._handle
        if handle is None:
            raise NotConnectedError()
        generation = self._generation
        endpoint = self._pool.current()
        try:
            await handle.write(record)
        except WRITE_ERRORS as exc:
            self.metrics.write_failures += 1
            raise WriteError(
                f"Write to {endpoint} failed: {exc}",
                endpoint=endpoint,
                generation=generation,
            ) from exc

    def get_status(self) -> Dict[str, Any]:
        endpoint = self.current_endpoint
        return {
            "state": self.state.value,
            "endpoint": str(endpoint) if endpoint is not None else None,
            "index": self._pool.index,
            "pool_size": len(self._pool),
            "generation": self._generation,
            **self.metrics.as_dict(),
        }


__all__ = ["ConnectionSupervisor"]
