"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from dispute_reporter.domain.models import ReportOutcome
from dispute_reporter.utils.date_utils import format_date


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "dispute-reporter", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "dispute-reporter") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_run_outcome(run_id: str, outcome: ReportOutcome, duration_ms: float) -> None:
    """Log structured run outcome for operators"""
    window = outcome.window
    logging.info(
        "Report run completed",
        extra={
            "run_id": run_id,
            "step": "run_complete",
            "outcome": outcome.status.value,
            "window_start": format_date(window.start) if window else None,
            "window_end": format_date(window.end) if window else None,
            "dispute_count": outcome.dispute_count,
            "task_id": outcome.task_id,
            "file_name": outcome.file_name,
            "duration_ms": duration_ms,
        },
    )
