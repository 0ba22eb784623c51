"""Helper modules for endpoint pool construction."""

from .parsing import parse_endpoint, parse_endpoint_list
from .shuffle import RandomSource, fisher_yates_shuffle

__all__ = [
    "RandomSource",
    "fisher_yates_shuffle",
    "parse_endpoint",
    "parse_endpoint_list",
]
