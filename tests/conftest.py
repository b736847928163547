"""Pytest fixtures for testing"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from dispute_reporter.api.main import create_app
from dispute_reporter.domain.models import ChargeRecord, DisputeRecord, PaymentMethod
from dispute_reporter.infrastructure.clients.asana import AsanaClient
from dispute_reporter.infrastructure.clients.mail import MailClient
from dispute_reporter.infrastructure.clients.stripe import StripeClient
from dispute_reporter.pipeline import ReportPipeline

# Wednesday; last completed week is 2025-06-23 .. 2025-06-29
NOW = datetime(2025, 7, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_dispute() -> Callable[..., DisputeRecord]:
    """Factory for disputes with an expanded charge"""

    def _make(
        dispute_id: str = "dp_1",
        amount: int = 100000,
        currency: str = "usd",
        reason: Optional[str] = "fraudulent",
        status: str = "needs_response",
        created_at: datetime = NOW - timedelta(hours=10),
        charge_created_at: Optional[datetime] = NOW - timedelta(hours=12),
        payment_method: PaymentMethod = PaymentMethod(type="card", brand="visa", funding="credit", country="US"),
        billing_email: Optional[str] = "buyer@example.com",
        customer_ref: Optional[str] = "cus_123",
    ) -> DisputeRecord:
        charge = None
        if charge_created_at is not None:
            charge = ChargeRecord(
                id=f"ch_{dispute_id}",
                created_at=charge_created_at,
                payment_method=payment_method,
                billing_email=billing_email,
                customer_ref=customer_ref,
            )
        return DisputeRecord(
            id=dispute_id,
            amount=amount,
            currency=currency,
            reason=reason,
            status=status,
            created_at=created_at,
            charge=charge,
        )

    return _make


@pytest.fixture
def billing() -> AsyncMock:
    mock = AsyncMock(spec=StripeClient)
    mock.get_account_label.return_value = "Acme Inc"
    mock.list_disputes.return_value = []
    return mock


@pytest.fixture
def tasks() -> AsyncMock:
    mock = AsyncMock(spec=AsanaClient)
    mock.create_task.return_value = "task_42"
    return mock


@pytest.fixture
def mail() -> AsyncMock:
    return AsyncMock(spec=MailClient)


@pytest.fixture
def pipeline(billing: AsyncMock, tasks: AsyncMock, mail: AsyncMock) -> ReportPipeline:
    return ReportPipeline(
        billing=billing,
        tasks=tasks,
        mail=mail,
        report_tz=timezone.utc,
        subject_template="Weekly Disputes Report for {account_name}",
        body_template="Disputes for {start_date} – {end_date}",
    )


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client without the background scheduler"""
    return TestClient(create_app(enable_scheduler=False))
