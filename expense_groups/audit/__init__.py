"""Logging and quality audit package."""

from expense_groups.audit.logger import (
    QualityAuditLogger,
    configure_logging,
    get_logger,
)

__all__ = ["QualityAuditLogger", "configure_logging", "get_logger"]
