"""Partial-file cleanup for interrupted downloads."""

from __future__ import annotations

import logging
import signal
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

_in_flight: set[Path] = set()


@contextmanager
def track_partial(path: Path) -> Iterator[Path]:
    """
    Mark a file as being written for the duration of the block.

    If the process is interrupted while the block runs, the signal handler
    removes the file so the next run does not mistake it for a finished
    download.
    """
    _in_flight.add(path)
    try:
        yield path
    finally:
        _in_flight.discard(path)


def in_flight_files() -> list[Path]:
    return sorted(_in_flight)


def cleanup_partial_files() -> int:
    """
    Remove every file currently being written.

    Returns:
        Number of files removed
    """
    removed = 0
    for path in list(_in_flight):
        try:
            if path.exists():
                path.unlink()
                removed += 1
                logging.info(f"Removed partial download: {path}")
        except OSError as e:
            logging.warning(f"Could not remove partial download {path}: {e}")
        _in_flight.discard(path)
    return removed


def register_cleanup_handlers() -> None:
    """Register signal handlers for graceful cleanup on interruption."""
    def signal_handler(signum: int, frame) -> None:
        logging.info(f"Received signal {signum}, cleaning up partial downloads...")
        cleanup_partial_files()
        sys.exit(1)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
