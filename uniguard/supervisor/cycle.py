"""Audit cycle orchestration.

One cycle: log the start, fork a worker that runs the check battery, block
until it exits, log how it ended, log the end.  Spawn failures and abnormal
worker exits become ERROR lines; the cycle always reaches its completion
line.  Only AuditLogError escapes, because without a log there is nowhere
to report anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ..audit.log import AuditLogger, Level
from ..health.engine import CheckRunner
from .worker import ExitClassification, ForkLauncher, Launcher, SpawnError

logger = logging.getLogger(__name__)

# Keeps one cycle id inside a single, atomically appended log line
MAX_CYCLE_ID_LENGTH = 256


def validate_cycle_id(cycle_id: str) -> str:
    """Return cycle_id unchanged, or raise ValueError if it cannot sit on one log line."""
    if not cycle_id:
        raise ValueError("cycle id must not be empty")
    if len(cycle_id) > MAX_CYCLE_ID_LENGTH:
        raise ValueError(f"cycle id longer than {MAX_CYCLE_ID_LENGTH} characters")
    if not cycle_id.isprintable():
        raise ValueError(f"cycle id contains control characters: {cycle_id!r}")
    return cycle_id


@dataclass
class AuditCycle:
    """Bookkeeping for one run_cycle call. Persisted only as log lines."""

    cycle_id: str
    started_at: datetime
    finished_at: datetime | None = None
    classification: ExitClassification | None = None


class AuditSupervisor:
    """Runs audit cycles: spawn worker, wait, classify, record."""

    def __init__(
        self,
        audit_log: AuditLogger,
        runner: CheckRunner,
        launcher: Launcher | None = None,
    ) -> None:
        self.audit_log = audit_log
        self.runner = runner
        self.launcher = launcher or ForkLauncher()
        self.last_cycle: AuditCycle | None = None

    @property
    def last_classification(self) -> ExitClassification | None:
        """Outcome of the most recent cycle, for callers that need more than the exit code."""
        return self.last_cycle.classification if self.last_cycle else None

    def run_cycle(self, cycle_id: str) -> ExitClassification:
        validate_cycle_id(cycle_id)
        cycle = AuditCycle(cycle_id=cycle_id, started_at=datetime.now())
        self.last_cycle = cycle
        self.audit_log.record(f"STARTING AUDIT CYCLE {cycle_id}", Level.INFO)

        try:
            handle = self.launcher.spawn(self._worker_main)
        except SpawnError as e:
            logger.warning("Cycle %s: %s", cycle_id, e)
            classification = ExitClassification.spawn_failure(str(e))
            self.audit_log.record(
                "Fork operation failed - cannot create child process", Level.ERROR,
            )
        else:
            try:
                self.audit_log.record("Parent process monitoring child execution", Level.INFO)
            finally:
                # Reap the worker even when the log has gone away
                classification = handle.wait()
                cycle.classification = classification
            self._record_classification(classification)

        cycle.classification = classification
        cycle.finished_at = datetime.now()
        self.audit_log.record(f"AUDIT CYCLE {cycle_id} COMPLETED", Level.INFO)
        return classification

    def _worker_main(self) -> int:
        """Entry point of the forked worker."""
        self.audit_log.record(
            "Child process started - performing detailed system checks", Level.INFO,
        )
        self.runner.run_all()
        # Finishing the battery is success, whatever the individual outcomes
        return 0

    def _record_classification(self, classification: ExitClassification) -> None:
        if classification.is_normal:
            self.audit_log.record(
                f"Child process completed successfully - Exit code: {classification.exit_code}",
                Level.SUCCESS,
            )
        else:
            if classification.signal is not None:
                logger.info("Worker killed by signal %d", classification.signal)
            self.audit_log.record("Child process terminated abnormally", Level.ERROR)
