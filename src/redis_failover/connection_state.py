"""
Canonical state definitions for the failover sink.
"""

from enum import Enum


class ConnectionState(Enum):
    """Whether the supervisor currently holds a live handle."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class RecoveryState(Enum):
    """
    States of the write-failure recovery loop.

    IDLE is the initial state, RECOVERING covers the disconnect/reconnect
    sweeps and EXHAUSTED is terminal until an explicit reset.
    """

    IDLE = "idle"
    RECOVERING = "recovering"
    EXHAUSTED = "exhausted"
