from pathlib import Path

import pytest

from redis_failover.config import runtime
from redis_failover.config.runtime import (
    env_bool,
    env_float,
    env_int,
    env_seconds,
    env_str,
    parse_dotenv_line,
    read_dotenv,
)
from redis_failover.exceptions import ConfigurationError

_CONST_15 = 15
_CONST_42 = 42


def _use_dotenv(monkeypatch, path: Path) -> None:
    monkeypatch.setattr(runtime, "_DOTENV_CANDIDATES", (path,))
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", None)


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("TEST_INT", "42")
    monkeypatch.setenv("TEST_FLOAT", "3.14")
    monkeypatch.setenv("TEST_BOOL_TRUE", "Yes")
    monkeypatch.setenv("TEST_BOOL_FALSE", "off")
    monkeypatch.setenv("TEST_SECONDS", "15")
    monkeypatch.setenv("TEST_STR", "  padded  ")

    assert env_int("TEST_INT") == _CONST_42
    assert env_float("TEST_FLOAT") == pytest.approx(3.14)
    assert env_bool("TEST_BOOL_TRUE") is True
    assert env_bool("TEST_BOOL_FALSE") is False
    assert env_seconds("TEST_SECONDS") == _CONST_15
    assert env_str("TEST_STR") == "padded"
    assert env_str("TEST_STR", strip=False) == "  padded  "


def test_env_helpers_defaults(monkeypatch):
    monkeypatch.delenv("MISSING_VALUE", raising=False)
    monkeypatch.setenv("BLANK_VALUE", "   ")

    assert env_str("MISSING_VALUE", or_value="fallback") == "fallback"
    assert env_str("BLANK_VALUE", or_value="fallback") == "fallback"
    assert env_int("MISSING_VALUE", or_value=7) == 7
    assert env_bool("MISSING_VALUE") is None


def test_env_helpers_errors(monkeypatch):
    monkeypatch.delenv("MISSING_INT", raising=False)
    with pytest.raises(ConfigurationError):
        env_int("MISSING_INT", required=True)
    with pytest.raises(ConfigurationError):
        env_str("MISSING_INT", required=True)

    monkeypatch.setenv("BAD_INT", "ten")
    with pytest.raises(ConfigurationError):
        env_int("BAD_INT")

    monkeypatch.setenv("BAD_FLOAT", "not-a-float")
    with pytest.raises(ConfigurationError):
        env_float("BAD_FLOAT")

    monkeypatch.setenv("BAD_BOOL", "maybe")
    with pytest.raises(ConfigurationError):
        env_bool("BAD_BOOL")

    monkeypatch.setenv("NEGATIVE_SECONDS", "-1")
    with pytest.raises(ConfigurationError):
        env_seconds("NEGATIVE_SECONDS")


def test_env_str_falls_back_to_dotenv(monkeypatch, tmp_path):
    dotenv = tmp_path / ".env"
    dotenv.write_text("# comment\nexport FROM_DOTENV='value'\nSHADOWED=file\n", encoding="utf-8")
    _use_dotenv(monkeypatch, dotenv)
    monkeypatch.delenv("FROM_DOTENV", raising=False)
    monkeypatch.setenv("SHADOWED", "environment")

    assert env_str("FROM_DOTENV") == "value"
    assert env_str("SHADOWED") == "environment"


def test_reset_default_values_rereads_files(monkeypatch, tmp_path):
    dotenv = tmp_path / ".env"
    dotenv.write_text("RELOADED=first\n", encoding="utf-8")
    _use_dotenv(monkeypatch, dotenv)
    monkeypatch.delenv("RELOADED", raising=False)
    assert env_str("RELOADED") == "first"

    dotenv.write_text("RELOADED=second\n", encoding="utf-8")
    assert env_str("RELOADED") == "first"

    runtime.reset_default_values()
    assert env_str("RELOADED") == "second"


def test_read_dotenv_parses_lines(tmp_path):
    dotenv = tmp_path / ".env"
    dotenv.write_text(
        '\n# comment\nnot a pair\nPLAIN=1\nQUOTED="two words"\nexport EXPORTED=yes\nEQUALS=a=b\n',
        encoding="utf-8",
    )

    assert read_dotenv(dotenv) == {
        "PLAIN": "1",
        "QUOTED": "two words",
        "EXPORTED": "yes",
        "EQUALS": "a=b",
    }


def test_read_dotenv_missing_file_is_empty(tmp_path):
    assert read_dotenv(tmp_path / "absent.env") == {}


def test_read_dotenv_wraps_read_errors(tmp_path):
    directory = tmp_path / "dir.env"
    directory.mkdir()

    with pytest.raises(ConfigurationError):
        read_dotenv(directory)


@pytest.mark.parametrize(
    "line, expected",
    [
        ("KEY=value", ("KEY", "value")),
        ("  export  KEY = 'quoted value'  ", ("KEY", "quoted value")),
        ('KEY="it\'s"', ("KEY", "it's")),
        ("KEY=", ("KEY", "")),
        ("# KEY=value", None),
        ("   ", None),
        ("=value", None),
        ("no separator", None),
    ],
)
def test_parse_dotenv_line(line, expected):
    assert parse_dotenv_line(line) == expected


def test_earlier_dotenv_candidates_win(monkeypatch, tmp_path):
    project = tmp_path / "project.env"
    home = tmp_path / "home.env"
    project.write_text("SHARED=project\n", encoding="utf-8")
    home.write_text("SHARED=home\nHOME_ONLY=yes\n", encoding="utf-8")
    monkeypatch.setattr(runtime, "_DOTENV_CANDIDATES", (project, home))
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", None)
    monkeypatch.delenv("SHARED", raising=False)
    monkeypatch.delenv("HOME_ONLY", raising=False)

    assert env_str("SHARED") == "project"
    assert env_str("HOME_ONLY") == "yes"
