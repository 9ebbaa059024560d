"""
Structured Logging and Quality Audit

DESIGN DECISION: Every module logs through structlog with event-style
messages ("groups_built", "group_resolved") and key/value context.
Nothing in the engine prints.

Importing this module only configures structlog. The stdlib root handler
belongs to the host application; configure_logging() installs one for
callers that want this package to own it.

The quality audit logger:
- Writes one log line per data-quality finding
- Maps finding severity to log level
- Never raises, the findings are advisory
"""

import logging
import sys
from typing import Optional

import structlog

from expense_groups.config import get_settings
from expense_groups.models.quality import (
    DataQualityIssue,
    DataQualityReport,
    IssueSeverity,
)


def _configure_structlog(renderer) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog for local logging
_configure_structlog(structlog.processors.JSONRenderer())


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
    force: bool = False,
) -> None:
    """
    Install a stderr root handler and pick the structlog renderer.

    Call before the first log line: loggers cache their configuration on
    first use.

    Args:
        level: Log level name. Defaults to LOG_LEVEL from settings.
        json_output: Render JSON lines. Defaults to LOG_JSON_OUTPUT.
        force: Replace root handlers that are already installed.
    """
    settings = get_settings().logging
    level_name = (level or settings.level).upper()
    use_json = settings.json_output if json_output is None else json_output

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
        force=force,
    )

    _configure_structlog(
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer()
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class QualityAuditLogger:
    """
    Logs data-quality findings.

    Used by the tracker after each rebuild so that bad data shows up in
    the logs without ever interrupting the UI.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or get_logger(__name__)

    def log_issue(self, issue: DataQualityIssue) -> None:
        """Log one finding at the level matching its severity."""
        log_dict = issue.to_log_dict()

        if issue.severity == IssueSeverity.ERROR:
            self._logger.error("data_quality_issue", **log_dict)
        elif issue.severity == IssueSeverity.WARNING:
            self._logger.warning("data_quality_issue", **log_dict)
        else:
            self._logger.debug("data_quality_issue", **log_dict)

    def log_report(self, report: DataQualityReport) -> int:
        """
        Log every finding of a report plus a one-line summary.

        Returns the number of findings logged.
        """
        for issue in report.issues:
            self.log_issue(issue)

        self._logger.info(
            "data_quality_checked",
            group_count=report.group_count,
            issue_count=report.issue_count,
            has_warnings=report.has_warnings,
        )
        return report.issue_count
