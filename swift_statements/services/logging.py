"""
Structured Logging Service

Provides statement-aware structured logging for key parsing events:
- Statement file decoded
- Statement parsed / parse failed
- Tag boundary merged into a free-text tag

Each log entry includes:
- event
- severity (INFO/WARN/ERROR)
- entity_type (statement, tag, file)
- tag_id / statement identifiers (if applicable)
"""
import json
import logging
from datetime import datetime, timezone
from typing import Optional, Any
from enum import Enum

from swift_statements.core.config import settings


class LogSeverity(str, Enum):
    """Log severity levels."""
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogEntityType(str, Enum):
    """Entity types for structured logging."""
    FILE = "file"
    STATEMENT = "statement"
    TAG = "tag"


class StructuredLogger:
    """
    Structured logging service for statement parsing events.

    Logs are emitted in JSON format suitable for:
    - Application logs
    - Import diagnostics (which tag broke a statement)
    """

    def __init__(self, logger_name: str = "swift_statements"):
        self.logger = logging.getLogger(logger_name)
        self._ensure_handler()

    def _ensure_handler(self):
        """Ensure logger has a proper handler configured."""
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)
            self.logger.setLevel(settings.LOG_LEVEL)

    def _create_log_entry(
        self,
        event: str,
        severity: LogSeverity,
        entity_type: LogEntityType,
        tag_id: Optional[str] = None,
        message: Optional[str] = None,
        **extra: Any
    ) -> dict:
        """Create a structured log entry."""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "severity": severity.value,
            "entity_type": entity_type.value,
        }

        if tag_id:
            entry["tag_id"] = tag_id
        if message:
            entry["message"] = message

        for key, value in extra.items():
            if isinstance(value, Enum):
                value = value.value
            entry[key] = value

        return entry

    def _log(self, entry: dict, severity: LogSeverity):
        """Emit the log entry at the appropriate level."""
        log_str = json.dumps(entry)
        if severity == LogSeverity.ERROR:
            self.logger.error(log_str)
        elif severity == LogSeverity.WARN:
            self.logger.warning(log_str)
        else:
            self.logger.info(log_str)

    # File events
    def statement_file_decoded(
        self,
        format_name: str,
        encoding: str,
        file_size: int
    ):
        """Log decoding of a raw statement file."""
        entry = self._create_log_entry(
            event="statement.file_decoded",
            severity=LogSeverity.INFO,
            entity_type=LogEntityType.FILE,
            message=f"{format_name} file decoded as {encoding}",
            format_name=format_name,
            encoding=encoding,
            file_size=file_size
        )
        self._log(entry, LogSeverity.INFO)

    # Statement events
    def statement_parsed(
        self,
        tag_count: int,
        transaction_count: int,
        account_identification: Optional[str] = None,
        statement_number: Optional[str] = None
    ):
        """Log a successfully parsed statement."""
        entry = self._create_log_entry(
            event="statement.parsed",
            severity=LogSeverity.INFO,
            entity_type=LogEntityType.STATEMENT,
            message=f"Statement parsed: {transaction_count} transactions",
            tag_count=tag_count,
            transaction_count=transaction_count,
            account_identification=account_identification,
            statement_number=statement_number
        )
        self._log(entry, LogSeverity.INFO)

    def statement_parse_failed(
        self,
        kind: str,
        error: str,
        tag_id: Optional[str] = None
    ):
        """Log a statement that could not be parsed."""
        entry = self._create_log_entry(
            event="statement.parse_failed",
            severity=LogSeverity.ERROR,
            entity_type=LogEntityType.STATEMENT,
            tag_id=tag_id,
            message=f"Statement parsing failed: {error}",
            kind=kind,
            error=error
        )
        self._log(entry, LogSeverity.ERROR)

    # Tag events
    def tag_merged(
        self,
        tag_id: str,
        into_tag_id: str,
        fragment: str
    ):
        """Log a marker-like line folded into the preceding free-text tag."""
        entry = self._create_log_entry(
            event="tag.merged",
            severity=LogSeverity.WARN,
            entity_type=LogEntityType.TAG,
            tag_id=tag_id,
            message=f"Marker :{tag_id}: merged into :{into_tag_id}: payload",
            into_tag_id=into_tag_id,
            fragment=fragment
        )
        self._log(entry, LogSeverity.WARN)


# Global logger instance
statement_logger = StructuredLogger()
