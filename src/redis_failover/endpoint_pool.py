"""
Shuffled, rotating pool of candidate endpoints.

The pool is shuffled exactly once at construction so that clients sharing an
endpoint list spread across it. Afterwards only the rotation cursor moves.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple, Union

from .endpoint_pool_helpers import RandomSource, fisher_yates_shuffle, parse_endpoint_list
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_SECURE_RANDOM = random.SystemRandom()


@dataclass(frozen=True)
class Endpoint:
    """A single ``(host, port)`` destination candidate."""

    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class EndpointPool:
    """Fixed shuffled sequence of endpoints plus a rotation cursor."""

    def __init__(self, endpoints: Sequence[Endpoint], *, rng: Optional[RandomSource] = None):
        if not endpoints:
            raise ConfigurationError.missing_value("endpoints", "pool requires at least one endpoint")
        shuffled = list(endpoints)
        fisher_yates_shuffle(shuffled, rng if rng is not None else _SECURE_RANDOM)
        self._endpoints: Tuple[Endpoint, ...] = tuple(shuffled)
        self._index = 0

    @classmethod
    def build(
        cls,
        raw: Union[str, Sequence[str], None],
        *,
        rng: Optional[RandomSource] = None,
    ) -> "EndpointPool":
        """
        Parse ``raw`` and return a freshly shuffled pool.

        Args:
            raw: ``"host1:port1,host2:port2"`` or a sequence of ``"host:port"`` entries
            rng: Optional random source; defaults to a process-wide SystemRandom

        Raises:
            ConfigurationError: If the list is empty or any entry is malformed
        """
        pool = cls(parse_endpoint_list(raw), rng=rng)
        logger.debug("Built endpoint pool with order %s", ", ".join(str(ep) for ep in pool.endpoints))
        return pool

    @property
    def index(self) -> int:
        return self._index

    @property
    def endpoints(self) -> Tuple[Endpoint, ...]:
        return self._endpoints

    def __len__(self) -> int:
        return len(self._endpoints)

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)

    def current(self) -> Endpoint:
        return self._endpoints[self._index]

    def advance(self) -> Endpoint:
        """Move the cursor to the next endpoint, wrapping around, and return it."""
        self._index = (self._index + 1) % len(self._endpoints)
        return self.current()

    def cycled_back_to_start(self, start_index: int) -> bool:
        return self._index == start_index


__all__ = ["Endpoint", "EndpointPool"]
