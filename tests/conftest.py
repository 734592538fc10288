"""Shared test fixtures."""

from __future__ import annotations

import io
import re
from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console

from uniguard.audit.log import AuditLogger
from uniguard.health.engine import CheckName, ExternalCheck

LINE_RE = re.compile(r"^\[(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\] \[([A-Z]+)\] (.*)$")


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(console_buffer: io.StringIO) -> Console:
    """A plain-text console writing to memory instead of stdout."""
    return Console(
        file=console_buffer, markup=False, emoji=False, highlight=False,
        soft_wrap=True, color_system=None,
    )


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "uniguard.log"


@pytest.fixture
def audit_log(log_path: Path, console: Console) -> AuditLogger:
    return AuditLogger(log_path, console=console)


@pytest.fixture
def read_log(log_path: Path) -> Callable[[], list[tuple[str, str]]]:
    """Return the log file as (level, message) pairs."""

    def _read() -> list[tuple[str, str]]:
        if not log_path.exists():
            return []
        entries = []
        for line in log_path.read_text(encoding="utf-8").splitlines():
            m = LINE_RE.match(line)
            assert m, f"malformed audit line: {line!r}"
            entries.append((m.group(2), m.group(3)))
        return entries

    return _read


@pytest.fixture
def make_probes() -> Callable[..., dict[CheckName, ExternalCheck]]:
    """Factory for fixed-outcome probes that never touch the system."""

    def _make(
        disk: bool = True, memory: bool = True, process: bool = True, network: bool = True,
    ) -> dict[CheckName, ExternalCheck]:
        return {
            CheckName.DISK: lambda: disk,
            CheckName.MEMORY: lambda: memory,
            CheckName.PROCESS: lambda: process,
            CheckName.NETWORK: lambda: network,
        }

    return _make
