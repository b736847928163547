"""Pydantic schemas for API responses"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from dispute_reporter.domain.models import ReportOutcome


class RunResponse(BaseModel):
    """Response for POST /v1/reports/run"""

    status: str
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    dispute_count: int = 0
    file_name: Optional[str] = None
    task_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: ReportOutcome) -> "RunResponse":
        return cls(
            status=outcome.status.value,
            window_start=outcome.window.start if outcome.window else None,
            window_end=outcome.window.end if outcome.window else None,
            dispute_count=outcome.dispute_count,
            file_name=outcome.file_name,
            task_id=outcome.task_id,
            error=outcome.error,
        )
