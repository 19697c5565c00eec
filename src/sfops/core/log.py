"""Injected logging capability.

The core never configures logging itself. Components receive a sink with a
``log(level, message)`` method (a ``logging.Logger`` qualifies) and a
per-instance verbose flag that gates the chatty messages.
"""

from __future__ import annotations

import logging
from typing import Protocol

PREFIX = "SFDX - "


class LogSink(Protocol):
    """Anything that can emit a message at a logging level."""

    def log(self, level: int, msg: str) -> None:
        """Emit msg at the given level."""
        ...


class ClientLog:
    """Prefixes messages and drops verbose ones unless verbose is enabled."""

    def __init__(self, sink: LogSink | None = None, verbose: bool = False):
        self.sink: LogSink = sink or logging.getLogger("sfops")
        self.verbose_enabled = verbose

    def info(self, msg: str) -> None:
        self.sink.log(logging.INFO, f"{PREFIX}{msg}")

    def warning(self, msg: str) -> None:
        self.sink.log(logging.WARNING, f"{PREFIX}{msg}")

    def verbose(self, msg: str) -> None:
        """Emit msg at DEBUG, only for verbose clients."""
        if self.verbose_enabled:
            self.sink.log(logging.DEBUG, f"{PREFIX}{msg}")
