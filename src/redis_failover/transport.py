"""
Collaborator protocols the failover core requires from its environment.

Any object exposing these awaitable methods can be plugged into the
supervisor; the Redis implementation lives in ``redis_failover.redis_transport``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol, Tuple, Type

from .exceptions import EndpointConnectionError, WriteError

ExceptionTuple = Tuple[Type[BaseException], ...]

# Failures a connection factory may surface for a single endpoint.
CONNECT_ERRORS: ExceptionTuple = (EndpointConnectionError, OSError, asyncio.TimeoutError)

# Failures a live handle may surface while writing.
WRITE_ERRORS: ExceptionTuple = (WriteError, OSError, asyncio.TimeoutError)

# Failures tolerated while releasing a handle.
CLOSE_ERRORS: ExceptionTuple = (OSError, asyncio.TimeoutError, RuntimeError)


class ConnectionHandle(Protocol):
    async def write(self, record: Any) -> None: ...

    async def close(self) -> None: ...


class ConnectionFactory(Protocol):
    async def open(self, host: str, port: int) -> ConnectionHandle: ...


__all__ = [
    "CLOSE_ERRORS",
    "CONNECT_ERRORS",
    "WRITE_ERRORS",
    "ConnectionFactory",
    "ConnectionHandle",
]
