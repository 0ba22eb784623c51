#!/usr/bin/env python3
"""Pipe newline-delimited records from stdin into Redis through the failover sink.

Endpoint and retry settings come from REDIS_FAILOVER_* environment variables;
command line options override them.

Usage:
    redis-failover-pipe --endpoints redis-a:6379,redis-b:6379 --key app-logs < events.ndjson
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Optional, Sequence, TextIO

from .exceptions import ConfigurationError
from .failover_sink import FailoverSink
from .logging_config import setup_logging
from .settings import RECOVERY_MODES, FailoverSettings, load_failover_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_WRITE_FAILURES = 1
EXIT_CONFIGURATION_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redis-failover-pipe",
        description="Push stdin lines onto a Redis list, failing over between endpoints",
    )
    parser.add_argument("--endpoints", help="Comma separated host:port list")
    parser.add_argument("--key", help="Redis list receiving the records")
    parser.add_argument("--max-retries", type=int, help="Backoff sweeps before giving up")
    parser.add_argument("--seconds-between-retry", type=int, help="Wait between backoff sweeps")
    parser.add_argument("--recovery-mode", choices=RECOVERY_MODES, help="Write failure recovery policy")
    parser.add_argument("--log-level", default="INFO", help="Console log level (default: INFO)")
    parser.add_argument("--log-dir", type=Path, help="Also write redis-failover-pipe.log to this directory")
    return parser


def resolve_settings(args: argparse.Namespace) -> FailoverSettings:
    """Overlay command line options on the environment settings."""
    overrides = {
        "key": args.key,
        "max_retries": args.max_retries,
        "seconds_between_retry": args.seconds_between_retry,
        "recovery_mode": args.recovery_mode,
    }
    overrides = {name: value for name, value in overrides.items() if value is not None}

    return dataclasses.replace(load_failover_settings(args.endpoints), **overrides)


async def pipe_records(sink: FailoverSink, lines: AsyncIterable[str]) -> tuple[int, int]:
    """
    Write each non-blank line through ``sink``.

    Returns:
        Tuple of (records_written, records_failed)
    """
    written = 0
    failed = 0
    async for line in lines:
        record = line.rstrip("\r\n")
        if not record:
            continue
        if await sink.write(record):
            written += 1
        else:
            failed += 1
    return written, failed


async def read_lines(stream: TextIO) -> AsyncIterator[str]:
    """Yield lines from a blocking stream as they arrive, until EOF."""
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, stream.readline)
        if not line:
            return
        yield line


async def run(settings: FailoverSettings, stream: TextIO) -> int:
    async with FailoverSink(settings) as sink:
        if not sink.active:
            return EXIT_CONFIGURATION_ERROR
        written, failed = await pipe_records(sink, read_lines(stream))
        logger.info("Wrote %d record(s), %d failed", written, failed)
        logger.debug("Final sink status: %s", sink.get_status())
    return EXIT_WRITE_FAILURES if failed else EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging("redis-failover-pipe", level=args.log_level, log_dir=args.log_dir)

    try:
        settings = resolve_settings(args)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIGURATION_ERROR

    try:
        return asyncio.run(run(settings, sys.stdin))
    except KeyboardInterrupt:
        logger.info("redis-failover-pipe interrupted by user")
        return EXIT_WRITE_FAILURES


if __name__ == "__main__":
    sys.exit(main())
