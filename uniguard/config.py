from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Audit trail (directory must already exist)
    audit_log_file: str = "./logs/uniguard.log"

    # Cycle label used when none is given on the command line
    default_cycle_id: str = "MANUAL"

    # Pause after each check before its completion line (seconds)
    check_settle_seconds: float = 1.0

    # Network reachability probe
    ping_target: str = "8.8.8.8"
    ping_timeout_sec: int = 1

    # Lines of `ps` output echoed by the process scan
    process_scan_limit: int = 5

    # Logging
    log_level: str = "INFO"


settings = Settings()
