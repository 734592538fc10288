"""Audit subsystem — leveled, timestamped event trail."""

from .log import AuditLogError, AuditLogger, Level, format_line
