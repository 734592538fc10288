from uniguard.supervisor.cycle import AuditCycle, AuditSupervisor
from uniguard.supervisor.worker import (
    ExitClassification,
    ExitKind,
    ForkLauncher,
    SpawnError,
    WorkerHandle,
)

__all__ = [
    "AuditCycle",
    "AuditSupervisor",
    "ExitClassification",
    "ExitKind",
    "ForkLauncher",
    "SpawnError",
    "WorkerHandle",
]
