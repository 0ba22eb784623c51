from __future__ import annotations

"""Runtime helpers for working with environment-backed configuration."""


import os
from pathlib import Path
from typing import Callable, Optional, TypeVar

from ..exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}

_DOTENV_CANDIDATES = (Path(".env"), Path.home() / ".env")

_DEFAULT_VALUES: dict[str, str] | None = None

T = TypeVar("T")


def parse_dotenv_line(line: str) -> Optional[tuple[str, str]]:
    """Split one ``KEY=value`` line; comments, blanks and lines without ``=`` yield ``None``."""
    text = line.strip()
    if not text or text.startswith("#"):
        return None
    key, separator, value = text.partition("=")
    key = key.strip()
    if key.startswith("export "):
        key = key[len("export ") :].lstrip()
    if not separator or not key:
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        value = value[1:-1]
    return key, value


def read_dotenv(path: Path) -> dict[str, str]:
    """
    Read a ``.env`` file into a dict; a missing file reads as empty.

    Raises:
        ConfigurationError: If the file exists but cannot be read
    """
    if not path.exists():
        return {}
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigurationError(f"Failed to load configuration from {path}", path=path) from exc
    return dict(pair for pair in map(parse_dotenv_line, lines) if pair is not None)


def _load_default_values() -> dict[str, str]:
    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is None:
        defaults: dict[str, str] = {}
        # Earlier candidates win
        for path in reversed(_DOTENV_CANDIDATES):
            defaults.update(read_dotenv(path))
        _DEFAULT_VALUES = defaults
    return _DEFAULT_VALUES


def reset_default_values() -> None:
    """Forget cached .env values so the next lookup re-reads the files."""
    global _DEFAULT_VALUES
    _DEFAULT_VALUES = None


def _default_value(name: str) -> Optional[str]:
    return _load_default_values().get(name)


def _lookup(name: str, *, strip: bool, allow_blank: bool) -> str | None:
    """Process environment first, then .env files; blank values fall through."""
    for source in (os.getenv, _default_value):
        value = source(name)
        if value is None:
            continue
        if strip:
            value = value.strip()
        if value or allow_blank:
            return value
    return None


def env_str(
    name: str,
    or_value: str | None = None,
    *,
    required: bool = False,
    strip: bool = True,
    allow_blank: bool = False,
) -> str | None:
    """Fetch an environment variable as a string."""
    value = _lookup(name, strip=strip, allow_blank=allow_blank)
    if value is None:
        if required:
            raise ConfigurationError.missing_value(name, "required environment variable is not set")
        return or_value
    return value


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(raw)


def _env_typed(name: str, parse: Callable[[str], T], kind: str, or_value: T | None, required: bool) -> T | None:
    """Look ``name`` up and convert it with ``parse``; blank counts as unset."""
    raw = env_str(name)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError.missing_value(name, "required environment variable is not set")
        return or_value
    try:
        return parse(raw)
    except ValueError as exc:
        raise ConfigurationError.invalid_value(name, raw, f"Expected {kind}") from exc


def env_int(name: str, or_value: int | None = None, *, required: bool = False) -> int | None:
    """Fetch an environment variable as ``int``."""
    return _env_typed(name, int, "an integer", or_value, required)


def env_float(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    """Fetch an environment variable as ``float``."""
    return _env_typed(name, float, "a number", or_value, required)


def env_bool(name: str, or_value: bool | None = None, *, required: bool = False) -> bool | None:
    """Fetch an environment variable as ``bool`` (1/0, true/false, yes/no, on/off)."""
    return _env_typed(name, _parse_bool, "a boolean", or_value, required)


def env_seconds(name: str, or_value: int | None = None, *, required: bool = False) -> int | None:
    """Fetch a non-negative duration in whole seconds."""
    value = env_int(name, or_value=or_value, required=required)
    if value is not None and value < 0:
        raise ConfigurationError.invalid_value(name, value, "Durations must be non-negative")
    return value


__all__ = [
    "ConfigurationError",
    "env_bool",
    "env_float",
    "env_int",
    "env_seconds",
    "env_str",
    "parse_dotenv_line",
    "read_dotenv",
    "reset_default_values",
]
