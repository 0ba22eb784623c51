"""Counters describing supervisor activity."""

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass
class SupervisorMetrics:
    """Connection lifecycle counters; opened minus closed is the number of live handles."""

    connect_attempts: int = 0
    connections_opened: int = 0
    connections_closed: int = 0
    failed_sweeps: int = 0
    write_failures: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)
