"""Helper modules for the connection supervisor."""

from .metrics_tracker import SupervisorMetrics

__all__ = ["SupervisorMetrics"]
