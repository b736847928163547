"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache

from dispute_reporter.infrastructure.clients.asana import AsanaClient
from dispute_reporter.infrastructure.clients.mail import MailClient
from dispute_reporter.infrastructure.clients.stripe import StripeClient
from dispute_reporter.pipeline import ReportPipeline


@lru_cache
def get_pipeline() -> ReportPipeline:
    """Process-wide pipeline; scheduled and manual runs share its run lock"""
    return ReportPipeline(
        billing=StripeClient(),
        tasks=AsanaClient(),
        mail=MailClient(),
    )
