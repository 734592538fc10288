"""Health subsystem — check battery, command probes, runner."""

from .engine import (
    BATTERY,
    CheckDef,
    CheckName,
    CheckOutcome,
    CheckRunner,
    CommandProbe,
    ExternalCheck,
    default_probes,
)
