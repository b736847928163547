"""Prometheus metrics for report runs, risk distribution and provider health"""

from prometheus_client import Counter, Histogram

from dispute_reporter.domain.models import OutcomeStatus, ScoredDispute

# Run metrics
report_run_counter = Counter(
    "dispute_report_runs_total",
    "Weekly report runs by outcome",
    ["outcome"],  # noop | delivered | failed | skipped
)

report_run_duration_histogram = Histogram(
    "dispute_report_run_duration_seconds",
    "Duration of a full report run",
    buckets=[1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
)

# Scoring metrics
disputes_scored_counter = Counter(
    "disputes_scored_total",
    "Disputes scored by risk level",
    ["level"],  # MINIMAL | LOW | MEDIUM | HIGH | CRITICAL
)

# Provider metrics
provider_fetch_failures_counter = Counter(
    "provider_fetch_failures_total",
    "Failed billing provider calls",
)


def record_run(status: OutcomeStatus, duration_seconds: float) -> None:
    report_run_counter.labels(outcome=status.value).inc()
    report_run_duration_histogram.observe(duration_seconds)


def record_scored(items: list[ScoredDispute]) -> None:
    """Record the risk level distribution of a batch"""
    for item in items:
        disputes_scored_counter.labels(level=item.assessment.level.value).inc()
