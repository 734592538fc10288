"""Entry point for uniguard — `uniguard` console script."""

from __future__ import annotations

import argparse
import logging
import sys

from uniguard.audit.log import AuditLogError, AuditLogger
from uniguard.config import Settings, settings
from uniguard.health.engine import CheckRunner, default_probes
from uniguard.supervisor.cycle import AuditSupervisor, validate_cycle_id

logger = logging.getLogger(__name__)


def build_supervisor(cfg: Settings) -> AuditSupervisor:
    """Wire logger, stock probes and fork launcher from settings."""
    audit_log = AuditLogger(cfg.audit_log_file)
    runner = CheckRunner(
        audit_log,
        default_probes(cfg),
        settle_seconds=cfg.check_settle_seconds,
    )
    return AuditSupervisor(audit_log, runner)


def _cycle_id_arg(value: str) -> str:
    try:
        return validate_cycle_id(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run one uniguard system audit cycle")
    parser.add_argument(
        "cycle_id",
        nargs="?",
        type=_cycle_id_arg,
        default=settings.default_cycle_id,
        help=f"Cycle identifier (default: {settings.default_cycle_id})",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    supervisor = build_supervisor(settings)
    try:
        supervisor.run_cycle(args.cycle_id)
    except AuditLogError as e:
        logger.error("Audit cycle %s aborted: %s", args.cycle_id, e)
        return 1

    # Failures are reported in the log, never through the exit code
    return 0


if __name__ == "__main__":
    sys.exit(main())
