"""Worker spawning — run a callable in a forked child and classify how it ended.

The supervisor only sees two things: ``ForkLauncher.spawn`` either raises
SpawnError or hands back a WorkerHandle, and ``WorkerHandle.wait`` blocks
until the child is gone and returns an ExitClassification.  The only channel
from child to parent is the process exit status.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)

# Exit code used when the worker target raises
WORKER_CRASH_EXIT_CODE = 1

WorkerTarget = Callable[[], "int | None"]


# ── Models ───────────────────────────────────────────────────────────────────


class ExitKind(str, Enum):
    NORMAL = "normal"
    ABNORMAL = "abnormal"
    SPAWN_FAILED = "spawn_failed"


@dataclass(frozen=True)
class ExitClassification:
    """How a worker ended. Derived once per cycle, never revised."""

    kind: ExitKind
    exit_code: int | None = None
    signal: int | None = None
    detail: str = ""

    @classmethod
    def normal(cls, code: int) -> ExitClassification:
        return cls(kind=ExitKind.NORMAL, exit_code=code)

    @classmethod
    def abnormal(cls, signal: int | None = None, detail: str = "") -> ExitClassification:
        return cls(kind=ExitKind.ABNORMAL, signal=signal, detail=detail)

    @classmethod
    def spawn_failure(cls, reason: str) -> ExitClassification:
        return cls(kind=ExitKind.SPAWN_FAILED, detail=reason)

    @classmethod
    def from_wait_status(cls, status: int) -> ExitClassification:
        """Decode a raw ``waitpid`` status."""
        if os.WIFEXITED(status):
            return cls.normal(os.WEXITSTATUS(status))
        if os.WIFSIGNALED(status):
            return cls.abnormal(signal=os.WTERMSIG(status))
        return cls.abnormal(detail=f"Unrecognized wait status {status}")

    @property
    def is_normal(self) -> bool:
        return self.kind == ExitKind.NORMAL


class SpawnError(Exception):
    """Raised when the worker process cannot be created."""


# ── Handles & launchers ──────────────────────────────────────────────────────


class WorkerHandle:
    """Termination handle for a spawned worker process."""

    def __init__(self, pid: int) -> None:
        self.pid = pid
        self._classification: ExitClassification | None = None

    def wait(self) -> ExitClassification:
        """Block until the worker exits. No timeout."""
        if self._classification is None:
            _, status = os.waitpid(self.pid, 0)
            self._classification = ExitClassification.from_wait_status(status)
            logger.debug("Worker %d reaped: %s", self.pid, self._classification)
        return self._classification


class Launcher(Protocol):
    def spawn(self, target: WorkerTarget) -> WorkerHandle: ...


class ForkLauncher:
    """Spawns workers by duplicating the current process (POSIX ``fork``)."""

    def spawn(self, target: WorkerTarget) -> WorkerHandle:
        # Unflushed buffers would otherwise be written twice
        sys.stdout.flush()
        sys.stderr.flush()
        try:
            pid = os.fork()
        except OSError as e:
            raise SpawnError(f"fork failed: {e}") from e

        if pid == 0:
            _run_child(target)  # never returns

        logger.debug("Spawned worker pid=%d", pid)
        return WorkerHandle(pid)


def _run_child(target: WorkerTarget) -> None:
    """Child side of the fork: run target, then leave via os._exit."""
    code = WORKER_CRASH_EXIT_CODE
    try:
        result = target()
        code = 0 if result is None else int(result)
    except SystemExit as e:
        code = e.code if isinstance(e.code, int) else (0 if e.code is None else 1)
    except BaseException:
        logger.exception("Worker pid=%d crashed", os.getpid())
    finally:
        try:
            sys.stdout.flush()
            sys.stderr.flush()
        finally:
            os._exit(code)
