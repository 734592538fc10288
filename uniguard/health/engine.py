"""Health check engine — runs the fixed check battery inside the audit worker.

Battery (always in this order, never short-circuited):
Disk Analysis, Memory Analysis, Process Scan, Network Check.

Each check is backed by an ExternalCheck: any zero-argument callable that
returns True on success.  The default probes shell out to the usual system
tools and let their output stream straight to the console; nothing is parsed.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..audit.log import AuditLogger, Level

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

ExternalCheck = Callable[[], bool]


# ── Models ───────────────────────────────────────────────────────────────────


class CheckName(str, Enum):
    DISK = "Disk Analysis"
    MEMORY = "Memory Analysis"
    PROCESS = "Process Scan"
    NETWORK = "Network Check"


@dataclass(frozen=True)
class CheckDef:
    """Static description of one battery entry and the lines it logs."""

    name: CheckName
    start_message: str
    success_message: str
    failure_message: str
    failure_level: Level = Level.SUCCESS
    banner: str | None = None
    # Observational checks pass whatever their probe returns
    gating: bool = False


@dataclass(frozen=True)
class CheckOutcome:
    """Result of a single check execution."""

    name: CheckName
    passed: bool


BATTERY: tuple[CheckDef, ...] = (
    CheckDef(
        name=CheckName.DISK,
        start_message="Checking disk usage and health...",
        success_message="Disk check completed",
        failure_message="Disk check completed",
        banner="[DISK] Current disk usage:",
    ),
    CheckDef(
        name=CheckName.MEMORY,
        start_message="Analyzing memory usage patterns...",
        success_message="Memory analysis completed",
        failure_message="Memory analysis completed",
        banner="[MEMORY] Current memory usage:",
    ),
    CheckDef(
        name=CheckName.PROCESS,
        start_message="Scanning running processes...",
        success_message="Process scan completed",
        failure_message="Process scan completed",
        banner="[PROCESSES] Top 5 processes by CPU:",
    ),
    # The only check whose outcome changes the logged level
    CheckDef(
        name=CheckName.NETWORK,
        start_message="Checking network connectivity...",
        success_message="Network connectivity: OK",
        failure_message="Network connectivity: FAILED",
        failure_level=Level.WARNING,
        gating=True,
    ),
)


# ── Command probes ───────────────────────────────────────────────────────────


class CommandProbe:
    """Run an external diagnostic command; success is a zero exit status.

    Output goes straight to stdout unless ``quiet`` (discarded) or
    ``max_lines`` (captured, first N lines echoed).
    """

    def __init__(self, argv: list[str], quiet: bool = False, max_lines: int | None = None) -> None:
        self.argv = list(argv)
        self.quiet = quiet
        self.max_lines = max_lines

    def __call__(self) -> bool:
        # Keep our own buffered lines ahead of the child's output
        sys.stdout.flush()
        try:
            if self.quiet:
                result = subprocess.run(
                    self.argv, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
                )
            elif self.max_lines is not None:
                result = subprocess.run(
                    self.argv, stdout=subprocess.PIPE, text=True,
                    encoding="utf-8", errors="replace",
                )
                head = result.stdout.splitlines(keepends=True)[: self.max_lines]
                sys.stdout.write("".join(head))
                sys.stdout.flush()
            else:
                result = subprocess.run(self.argv)
        except OSError as e:
            logger.warning("Probe %s could not run: %s", self.argv[0], e)
            return False
        return result.returncode == 0

    def __repr__(self) -> str:
        return f"CommandProbe({' '.join(self.argv)!r})"


def default_probes(settings: Settings) -> dict[CheckName, ExternalCheck]:
    """Build the stock probes: df, free, ps and a single ping."""
    return {
        CheckName.DISK: CommandProbe(["df", "-h", "/"], max_lines=2),
        CheckName.MEMORY: CommandProbe(["free", "-h"]),
        CheckName.PROCESS: CommandProbe(
            ["ps", "-eo", "pid,ppid,cmd,%mem,%cpu", "--sort=-%cpu", "--no-headers"],
            max_lines=settings.process_scan_limit,
        ),
        CheckName.NETWORK: CommandProbe(
            ["ping", "-c", "1", "-W", str(settings.ping_timeout_sec), settings.ping_target],
            quiet=True,
        ),
    }


# ── Runner ───────────────────────────────────────────────────────────────────


class CheckRunner:
    """Executes the battery sequentially and reports an aggregate count.

    Lifecycle:
        runner = CheckRunner(audit_log, probes)
        outcomes = runner.run_all()
    """

    def __init__(
        self,
        audit_log: AuditLogger,
        probes: Mapping[CheckName, ExternalCheck],
        settle_seconds: float = 1.0,
    ) -> None:
        missing = [c.name.value for c in BATTERY if c.name not in probes]
        if missing:
            raise KeyError(f"No probe configured for: {', '.join(missing)}")
        self.audit_log = audit_log
        self.probes = dict(probes)
        self.settle_seconds = settle_seconds

    def run_check(self, check: CheckDef) -> CheckOutcome:
        self.audit_log.record(check.start_message, Level.INFO)
        if check.banner:
            self.audit_log.console.print(check.banner, markup=False)

        probe_ok = bool(self.probes[check.name]())
        if not probe_ok and not check.gating:
            logger.info("%s probe failed; counted as passed (observational)", check.name.value)
        passed = probe_ok or not check.gating

        if self.settle_seconds > 0:
            time.sleep(self.settle_seconds)

        if passed:
            self.audit_log.record(check.success_message, Level.SUCCESS)
        else:
            self.audit_log.record(check.failure_message, check.failure_level)
        return CheckOutcome(name=check.name, passed=passed)

    def run_all(self) -> list[CheckOutcome]:
        """Run every check in order, then log ``k/total passed``."""
        outcomes = [self.run_check(check) for check in BATTERY]
        passed = sum(1 for o in outcomes if o.passed)
        self.audit_log.record(
            f"All system checks completed: {passed}/{len(outcomes)} passed",
            Level.SUCCESS,
        )
        return outcomes
