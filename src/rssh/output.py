"""Console messages, logging and transfer progress."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

if TYPE_CHECKING:
    from rssh.ssh.transfer import TransferJob

RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
CYAN = "\033[36m"
DIM = "\033[2m"
NC = "\033[0m"

_logger = logging.getLogger("rssh")


def _supports_color(stream: object = None) -> bool:
    if stream is None:
        stream = sys.stderr
    isatty = getattr(stream, "isatty", None)
    return callable(isatty) and bool(isatty())


def _colorize(color: str, text: str) -> str:
    return f"{color}{text}{NC}" if _supports_color() else text


class ColoredFormatter(logging.Formatter):
    """Dim debug records, color warnings and errors."""

    LEVEL_COLORS = (
        (logging.ERROR, RED),
        (logging.WARNING, YELLOW),
    )

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        if not _supports_color():
            return msg
        for level, color in self.LEVEL_COLORS:
            if record.levelno >= level:
                return f"{color}{msg}{NC}"
        if record.levelno <= logging.DEBUG:
            return f"{DIM}{msg}{NC}"
        return msg


def setup_logging(debug: bool = False) -> None:
    """Configure the rssh logger.

    With debug on, paramiko's transport log goes through the same stderr
    handler so key exchange and auth steps show up next to rssh's own.
    """
    level = logging.DEBUG if debug else logging.WARNING
    _logger.setLevel(level)

    if not _logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColoredFormatter("%(message)s"))
        _logger.addHandler(handler)
    for handler in _logger.handlers:
        handler.setLevel(level)

    if debug:
        paramiko_logger = logging.getLogger("paramiko")
        paramiko_logger.setLevel(logging.DEBUG)
        for handler in _logger.handlers:
            if handler not in paramiko_logger.handlers:
                paramiko_logger.addHandler(handler)


def debug(msg: str) -> None:
    _logger.debug(msg)


def error(msg: str) -> None:
    print(_colorize(RED, f"error: {msg}"), file=sys.stderr)


def warn(msg: str) -> None:
    print(_colorize(YELLOW, f"warning: {msg}"), file=sys.stderr)


def info(msg: str) -> None:
    print(_colorize(CYAN, msg), file=sys.stderr)


def success(msg: str) -> None:
    print(_colorize(GREEN, msg), file=sys.stderr)


class TransferProgress:
    """Progress bar for a single transfer, usable as the engine's callback.

    The bar is indeterminate until the job reports a total size, so a
    download whose size could not be queried still shows a byte counter.
    """

    def __init__(self, description: str, console: Console | None = None):
        self.description = description
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=console or Console(stderr=True),
        )
        self._task = None

    def __enter__(self) -> "TransferProgress":
        return self

    def __exit__(self, *exc_info) -> None:
        if self._task is not None:
            self._progress.stop()

    def __call__(self, job: "TransferJob") -> None:
        # Started on the first report so password prompts stay readable
        if self._task is None:
            self._progress.start()
            self._task = self._progress.add_task(self.description, total=None)
        self._progress.update(
            self._task,
            completed=job.transferred_bytes,
            total=job.total_bytes,
        )
