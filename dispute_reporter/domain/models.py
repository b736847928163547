"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class RiskLevel(str, Enum):
    """Qualitative risk bucket derived from a 0-100 score"""

    MINIMAL = "MINIMAL"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class PaymentMethod:
    """Card details of the disputed charge; every field may be unknown"""

    type: Optional[str] = None  # "card", "sepa_debit", ...
    brand: Optional[str] = None
    funding: Optional[str] = None  # "credit" | "debit" | "prepaid"
    country: Optional[str] = None


@dataclass(frozen=True)
class ChargeRecord:
    """Original payment behind a dispute"""

    id: str
    created_at: datetime
    payment_method: PaymentMethod = field(default_factory=PaymentMethod)
    billing_email: Optional[str] = None
    customer_ref: Optional[str] = None


@dataclass(frozen=True)
class DisputeRecord:
    """Dispute as returned by the billing provider"""

    id: str
    amount: int  # minor units, or major units for zero-decimal currencies
    currency: str
    reason: Optional[str]
    status: Optional[str]
    created_at: datetime
    charge: Optional[ChargeRecord] = None


@dataclass(frozen=True)
class RiskAssessment:
    """Output of the risk scorer"""

    score: int
    level: RiskLevel
    factors: Tuple[str, ...]
    meter: str


@dataclass(frozen=True)
class ScoredDispute:
    """A dispute paired with its assessment"""

    dispute: DisputeRecord
    assessment: RiskAssessment


@dataclass(frozen=True)
class ReportWindow:
    """Inclusive reporting period"""

    start: datetime  # Monday 00:00:00.000
    end: datetime  # Sunday 23:59:59.999


class OutcomeStatus(str, Enum):
    NOOP = "noop"
    DELIVERED = "delivered"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ReportOutcome:
    """Result of a single pipeline run"""

    status: OutcomeStatus
    window: Optional[ReportWindow] = None
    dispute_count: int = 0
    file_name: Optional[str] = None
    task_id: Optional[str] = None
    error: Optional[str] = None
