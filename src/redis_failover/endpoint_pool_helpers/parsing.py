"""Parsing of ``host:port`` endpoint lists."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Union

from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from ..endpoint_pool import Endpoint

_MIN_PORT = 1
_MAX_PORT = 65535
_EXPECTED_FORMAT = "host:port"


def parse_endpoint(raw: str) -> "Endpoint":
    """
    Parse a single ``host:port`` entry.

    Raises:
        ConfigurationError: If the host or port is missing or the port is not a valid integer
    """
    from ..endpoint_pool import Endpoint

    entry = raw.strip()
    host, separator, port_text = entry.rpartition(":")
    host = host.strip()
    port_text = port_text.strip()
    if not separator or not host or not port_text:
        raise ConfigurationError.invalid_format("endpoint", raw, _EXPECTED_FORMAT)

    # int() alone would also take "+6379", "6_379" and non-ASCII digits
    if not (port_text.isascii() and port_text.isdigit()):
        raise ConfigurationError.invalid_value("endpoint port", port_text, f"in entry {raw!r}")
    port = int(port_text)

    if not _MIN_PORT <= port <= _MAX_PORT:
        raise ConfigurationError.invalid_value(
            "endpoint port", port, f"must be between {_MIN_PORT} and {_MAX_PORT}"
        )
    return Endpoint(host=host, port=port)


def parse_endpoint_list(raw: Union[str, Sequence[str], None]) -> List["Endpoint"]:
    """
    Parse a comma separated string (or a sequence of entries) into endpoints.

    A single malformed entry invalidates the whole list.
    """
    if raw is None:
        raise ConfigurationError.missing_value("endpoints")

    entries = raw.split(",") if isinstance(raw, str) else list(raw)
    if not entries or all(not entry.strip() for entry in entries):
        raise ConfigurationError.missing_value("endpoints", "at least one host:port entry is required")

    return [parse_endpoint(entry) for entry in entries]
