"""
Redis implementation of the connection collaborators.

Records are appended to a Redis list with ``RPUSH``. Each ``open`` builds a
dedicated ``redis.asyncio`` client for one endpoint and verifies it with
``PING`` before handing it to the supervisor.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Union

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .endpoint_pool import Endpoint
from .exceptions import EndpointConnectionError, WriteError

logger = logging.getLogger(__name__)

# redis-py errors plus the socket/timeout failures it lets through.
REDIS_ERRORS = (RedisError, OSError, asyncio.TimeoutError)

DEFAULT_KEY = "logs"
DEFAULT_SOCKET_TIMEOUT_SECONDS = 2.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 2.0

ClientFactory = Callable[..., Redis]


async def _close_client(client: Redis, endpoint: Endpoint) -> None:
    try:
        await client.aclose()
    except REDIS_ERRORS as exc:
        logger.debug("Ignoring close error for %s: %s", endpoint, exc)


class RedisListConnection:
    """Live connection to one endpoint that pushes records onto a list key."""

    def __init__(self, client: Redis, key: str, endpoint: Endpoint):
        self._client = client
        self._key = key
        self.endpoint = endpoint

    async def write(self, record: Union[bytes, str]) -> None:
        try:
            await self._client.rpush(self._key, record)
        except REDIS_ERRORS as exc:
            raise WriteError(f"RPUSH to {self.endpoint} failed: {type(exc).__name__}: {exc}", endpoint=self.endpoint) from exc

    async def close(self) -> None:
        await _close_client(self._client, self.endpoint)


class RedisConnectionFactory:
    """Opens verified Redis connections for the supervisor."""

    def __init__(
        self,
        key: str = DEFAULT_KEY,
        *,
        password: Optional[str] = None,
        db: int = 0,
        socket_timeout: float = DEFAULT_SOCKET_TIMEOUT_SECONDS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.key = key
        self._password = password
        self._db = db
        self._socket_timeout = socket_timeout
        self._connect_timeout = connect_timeout
        self._client_factory = client_factory or Redis

    def _client_kwargs(self, host: str, port: int) -> dict[str, Any]:
        return {
            "host": host,
            "port": port,
            "db": self._db,
            "password": self._password,
            "socket_timeout": self._socket_timeout,
            "socket_connect_timeout": self._connect_timeout,
        }

    async def open(self, host: str, port: int) -> RedisListConnection:
        """
        Connect to ``host:port`` and verify the server answers.

        Raises:
            EndpointConnectionError: If the client cannot be created or PING fails
        """
        endpoint = Endpoint(host=host, port=port)
        client = self._client_factory(**self._client_kwargs(host, port))
        try:
            await client.ping()
        except REDIS_ERRORS as exc:
            await _close_client(client, endpoint)
            raise EndpointConnectionError(
                f"Redis connection to {endpoint} failed: {type(exc).__name__}: {exc}",
                host=host,
                port=port,
            ) from exc

        logger.debug("Redis endpoint %s answered PING", endpoint)
        return RedisListConnection(client, self.key, endpoint)


__all__ = [
    "DEFAULT_KEY",
    "REDIS_ERRORS",
    "RedisConnectionFactory",
    "RedisListConnection",
]
