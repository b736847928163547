"""CSV rendering of scored disputes"""

import csv
import re
from pathlib import Path
from typing import Dict, Iterable, List

from dispute_reporter.domain.exceptions import RenderError
from dispute_reporter.domain.models import ReportWindow, ScoredDispute
from dispute_reporter.domain.scoring import format_major_amount
from dispute_reporter.utils.date_utils import format_date, format_minute_utc

NOT_AVAILABLE = "N/A"

# Reserved column; no win-likelihood model exists yet
WIN_LIKELIHOOD_PLACEHOLDER = NOT_AVAILABLE

# (field, header title) in output order
REPORT_COLUMNS: List[tuple[str, str]] = [
    ("id", "id"),
    ("dispute_created_utc", "Dispute Created (UTC)"),
    ("dispute_amount", "Dispute Amount"),
    ("dispute_currency", "Dispute Currency"),
    ("charge_id", "Charge ID"),
    ("customer_email", "Customer Email"),
    ("customer_id", "Customer ID"),
    ("reason", "Reason"),
    ("status", "Status"),
    ("win_likelihood", "Win Likelihood"),
    ("payment_method_type", "Payment Method Type"),
    ("risk_score", "Risk Score"),
    ("risk_level", "Risk Level"),
    ("risk_meter", "Risk Meter"),
    ("risk_factors", "Risk Factors"),
]

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def report_file_name(window: ReportWindow, account_label: str) -> str:
    """e.g. '2025-06-23 - 2025-06-29 Acme Inc disputes.csv'"""
    label = _UNSAFE_FILENAME_CHARS.sub("_", account_label).strip() or "Unknown Account"
    return f"{format_date(window.start)} - {format_date(window.end)} {label} disputes.csv"


def build_row(item: ScoredDispute) -> Dict[str, object]:
    """Flatten one scored dispute into a CSV row"""
    dispute = item.dispute
    charge = dispute.charge
    assessment = item.assessment
    currency = dispute.currency.lower()

    return {
        "id": dispute.id,
        "dispute_created_utc": format_minute_utc(dispute.created_at),
        "dispute_amount": format_major_amount(dispute.amount, currency),
        "dispute_currency": currency,
        "charge_id": charge.id if charge else NOT_AVAILABLE,
        "customer_email": (charge.billing_email if charge else None) or NOT_AVAILABLE,
        "customer_id": (charge.customer_ref if charge else None) or NOT_AVAILABLE,
        "reason": dispute.reason or NOT_AVAILABLE,
        "status": dispute.status or NOT_AVAILABLE,
        "win_likelihood": WIN_LIKELIHOOD_PLACEHOLDER,
        "payment_method_type": (charge.payment_method.type if charge else None) or NOT_AVAILABLE,
        "risk_score": assessment.score,
        "risk_level": assessment.level.value,
        "risk_meter": assessment.meter,
        "risk_factors": "; ".join(assessment.factors),
    }


def render_report_csv(items: Iterable[ScoredDispute], path: Path) -> Path:
    """
    Write scored disputes to a UTF-8 CSV at `path`, preserving input order.

    Raises:
        RenderError: If the file cannot be written or encoded
    """
    fieldnames = [name for name, _ in REPORT_COLUMNS]
    header = {name: title for name, title in REPORT_COLUMNS}
    try:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writerow(header)
            for item in items:
                writer.writerow(build_row(item))
    except (OSError, UnicodeError, csv.Error) as e:
        raise RenderError(f"Could not write report {path.name}: {e}") from e
    return path
