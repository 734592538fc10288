"""Audit trail — timestamped, leveled lines appended to a log file and mirrored to the console.

Every record is a complete, independent write: the file is opened in append
mode, written once and closed again.  The supervisor and its forked worker
both write to the same file this way and interleave at line granularity.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from rich.console import Console

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class Level(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


LEVEL_STYLES: dict[Level, str] = {
    Level.INFO: "",
    Level.SUCCESS: "green",
    Level.WARNING: "yellow",
    Level.ERROR: "bold red",
}


class AuditLogError(Exception):
    """Raised when the audit log destination cannot be written."""


def format_line(message: str, level: Level = Level.INFO, when: datetime | None = None) -> str:
    """Render one audit line: ``[YYYY-MM-DD HH:MM:SS] [LEVEL] message`` (local time)."""
    stamp = (when or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return f"[{stamp}] [{Level(level).value}] {message}"


class AuditLogger:
    """Fan-out of audit events to the persistent log file and the live console."""

    def __init__(self, log_file: str | Path, console: Console | None = None) -> None:
        self.log_file = Path(log_file)
        self._console = console or Console(
            markup=False, emoji=False, highlight=False, soft_wrap=True,
        )

    @property
    def console(self) -> Console:
        return self._console

    def record(self, message: str, level: Level = Level.INFO) -> str:
        """Append one line to the log file and echo it to the console.

        Raises AuditLogError if the destination is unwritable.
        """
        line = format_line(message, level)
        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            raise AuditLogError(f"Cannot write audit log {self.log_file}: {e}") from e

        self._console.print(line, style=LEVEL_STYLES[Level(level)], markup=False)
        return line
