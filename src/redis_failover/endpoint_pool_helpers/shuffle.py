"""In-place Fisher-Yates shuffle with an injectable random source."""

from __future__ import annotations

from typing import MutableSequence, Protocol, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


def fisher_yates_shuffle(items: MutableSequence[T], rng: RandomSource) -> None:
    """
    Shuffle ``items`` in place, uniformly over all permutations.

    Args:
        items: Sequence to permute
        rng: Source of randomness; ``random.Random(seed)`` gives reproducible orders
    """
    for i in range(len(items) - 1, 0, -1):
        j = rng.randrange(i + 1)
        items[i], items[j] = items[j], items[i]
