"""Failover delivery of records to one of several interchangeable Redis endpoints."""

from .connection_state import ConnectionState, RecoveryState
from .connection_supervisor import ConnectionSupervisor
from .endpoint_pool import Endpoint, EndpointPool
from .exceptions import (
    ConfigurationError,
    EndpointConnectionError,
    ExhaustionError,
    FailoverError,
    NotConnectedError,
    RecordEncodingError,
    WriteError,
)
from .failover_sink import FailoverSink
from .failure_recovery import FailureRecoveryLoop, RecoveryPolicy, RetryState, SingleSweepRecovery
from .redis_transport import RedisConnectionFactory, RedisListConnection
from .settings import FailoverSettings, load_failover_settings
from .transport import ConnectionFactory, ConnectionHandle

__all__ = [
    # core
    "ConnectionSupervisor",
    "Endpoint",
    "EndpointPool",
    "FailureRecoveryLoop",
    "RecoveryPolicy",
    "RetryState",
    "SingleSweepRecovery",
    # states
    "ConnectionState",
    "RecoveryState",
    # collaborators
    "ConnectionFactory",
    "ConnectionHandle",
    "RedisConnectionFactory",
    "RedisListConnection",
    # hosting
    "FailoverSettings",
    "FailoverSink",
    "load_failover_settings",
    # errors
    "ConfigurationError",
    "EndpointConnectionError",
    "ExhaustionError",
    "FailoverError",
    "NotConnectedError",
    "RecordEncodingError",
    "WriteError",
]
