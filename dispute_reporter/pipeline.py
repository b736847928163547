"""Weekly dispute report pipeline: fetch → score → render → deliver"""

import asyncio
import logging
import tempfile
import time
import uuid
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

from dispute_reporter.config import settings
from dispute_reporter.domain.exceptions import DisputeReportError, FetchError, RenderError
from dispute_reporter.domain.models import OutcomeStatus, ReportOutcome, ReportWindow
from dispute_reporter.domain.report import render_report_csv, report_file_name
from dispute_reporter.domain.scoring import score_and_sort
from dispute_reporter.infrastructure.clients.asana import AsanaClient
from dispute_reporter.infrastructure.clients.mail import MailClient
from dispute_reporter.infrastructure.clients.stripe import UNKNOWN_ACCOUNT, StripeClient
from dispute_reporter.infrastructure.observability.logging import log_run_outcome
from dispute_reporter.infrastructure.observability.metrics import (
    provider_fetch_failures_counter,
    record_run,
    record_scored,
)
from dispute_reporter.utils.date_utils import format_date, last_completed_week

logger = logging.getLogger(__name__)


class ReportPipeline:
    """
    Runs one weekly report end to end.

    Flow:
    1. Resolve last week's window from a single captured "now"
    2. Fetch disputes created in the window
    3. Stop with a no-op outcome when there are none
    4. Score and sort by descending risk
    5. Render the CSV into a per-run temp directory
    6. File an Asana task with the CSV attached, then email it
    7. Remove the temp directory on every path

    Runs never overlap: a run requested while another is in flight is skipped.
    """

    def __init__(
        self,
        billing: StripeClient,
        tasks: AsanaClient,
        mail: MailClient,
        report_tz: tzinfo | None = None,
        subject_template: str | None = None,
        body_template: str | None = None,
    ):
        self.billing = billing
        self.tasks = tasks
        self.mail = mail
        self.report_tz = report_tz or ZoneInfo(settings.report_timezone)
        self.subject_template = subject_template or settings.email_subject_template
        self.body_template = body_template or settings.email_body_template
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run(self, now: datetime | None = None) -> ReportOutcome:
        if self._lock.locked():
            logger.warning("Report run already in progress, skipping")
            outcome = ReportOutcome(status=OutcomeStatus.SKIPPED)
            record_run(outcome.status, 0.0)
            return outcome

        async with self._lock:
            return await self._run(now or datetime.now(timezone.utc))

    async def _run(self, now: datetime) -> ReportOutcome:
        start_time = time.time()
        run_id = uuid.uuid4().hex[:12]
        window = last_completed_week(now, self.report_tz)

        logger.info(
            "Starting weekly disputes report",
            extra={
                "run_id": run_id,
                "window_start": format_date(window.start),
                "window_end": format_date(window.end),
            },
        )

        try:
            outcome = await self._execute(now, window)
        except DisputeReportError as e:
            if isinstance(e, FetchError):
                provider_fetch_failures_counter.inc()
            logger.exception(
                f"Weekly report failed: {e}",
                extra={
                    "run_id": run_id,
                    "error_type": type(e).__name__,
                    "failed_at": datetime.now(timezone.utc).isoformat(),
                },
            )
            outcome = ReportOutcome(status=OutcomeStatus.FAILED, window=window, error=str(e))
        except Exception as e:
            logger.exception(
                f"Unexpected error in weekly report: {e}",
                extra={
                    "run_id": run_id,
                    "error_type": type(e).__name__,
                    "failed_at": datetime.now(timezone.utc).isoformat(),
                },
            )
            outcome = ReportOutcome(status=OutcomeStatus.FAILED, window=window, error=str(e))

        duration = time.time() - start_time
        record_run(outcome.status, duration)
        log_run_outcome(run_id, outcome, duration * 1000)
        return outcome

    async def _resolve_account_label(self) -> str:
        try:
            return await self.billing.get_account_label()
        except FetchError as e:
            provider_fetch_failures_counter.inc()
            logger.warning(f"Could not retrieve account info: {e}")
            return UNKNOWN_ACCOUNT

    async def _execute(self, now: datetime, window: ReportWindow) -> ReportOutcome:
        account = await self._resolve_account_label()
        logger.info("Resolved billing account", extra={"account": account})

        disputes = await self.billing.list_disputes(window)
        if not disputes:
            logger.info("No disputes found for this period")
            return ReportOutcome(status=OutcomeStatus.NOOP, window=window)

        scored = score_and_sort(disputes, now)
        record_scored(scored)

        file_name = report_file_name(window, account)
        start_date, end_date = format_date(window.start), format_date(window.end)
        try:
            subject = self.subject_template.format(account_name=account)
            body = self.body_template.format(start_date=start_date, end_date=end_date)
        except (KeyError, IndexError, ValueError) as e:
            raise RenderError(f"Invalid mail template: {e}") from e

        try:
            work_dir = tempfile.TemporaryDirectory(prefix="dispute-report-")
        except OSError as e:
            raise RenderError(f"Could not create working directory: {e}") from e

        with work_dir as tmp:
            path = render_report_csv(scored, Path(tmp) / file_name)
            logger.info("CSV file generated", extra={"file_name": file_name, "rows": len(scored)})

            task_id = await self.tasks.create_task(
                title=f"Weekly Stripe Disputes Report - {start_date} to {end_date}",
                notes=f"Disputes report for the period {start_date} – {end_date}",
                due_on=now.astimezone(self.report_tz).date(),
            )
            await self.tasks.attach_file(task_id, path)
            await self.mail.send_report(subject, body, path)

        logger.info("Local CSV file cleaned up", extra={"file_name": file_name})
        return ReportOutcome(
            status=OutcomeStatus.DELIVERED,
            window=window,
            dispute_count=len(scored),
            file_name=file_name,
            task_id=task_id,
        )
