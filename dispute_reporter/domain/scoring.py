"""Risk scoring engine - fixed multi-factor heuristic for dispute triage"""

import logging
import math
from datetime import datetime, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from dispute_reporter.domain.models import (
    DisputeRecord,
    PaymentMethod,
    RiskAssessment,
    RiskLevel,
    ScoredDispute,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400

REASON_MAX = 30
AMOUNT_MAX = 25
CUSTOMER_AGE_MAX = 20
TIMING_MAX = 15
PAYMENT_METHOD_MAX = 10

FALLBACK_SCORE = 50
FALLBACK_FACTOR = "Insufficient data for risk analysis"

REASON_POINTS: Mapping[str, int] = MappingProxyType(
    {
        "fraudulent": 30,
        "unrecognized": 25,
        "duplicate": 15,
        "subscription_canceled": 10,
        "product_unacceptable": 8,
        "product_not_received": 6,
        "credit_not_processed": 5,
        "general": 3,
    }
)
UNKNOWN_REASON_POINTS = 5

ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
        "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
    }
)

# Rough purchasing equivalents of $1000/$500/$200/$100/$50, not live FX rates
USD_AMOUNT_THRESHOLDS: Tuple[int, ...] = (1000, 500, 200, 100, 50)
AMOUNT_THRESHOLDS: Mapping[str, Tuple[int, ...]] = MappingProxyType(
    {
        "jpy": (100_000, 50_000, 20_000, 10_000, 5_000),
        "krw": (100_000, 50_000, 20_000, 10_000, 5_000),
        "hkd": (8000, 4000, 1600, 800, 400),
        "eur": (900, 450, 180, 90, 45),
        "gbp": (900, 450, 180, 90, 45),
        "usd": USD_AMOUNT_THRESHOLDS,
    }
)
AMOUNT_BAND_POINTS: Tuple[int, ...] = (25, 20, 15, 10, 5)
AMOUNT_FLOOR_POINTS = 2

# (upper bound in days, points); younger/faster is riskier
CUSTOMER_AGE_BANDS: Tuple[Tuple[float, int], ...] = ((1, 20), (7, 15), (30, 10), (90, 5))
CUSTOMER_AGE_FLOOR_POINTS = 2
TIMING_BANDS: Tuple[Tuple[float, int], ...] = ((1, 15), (3, 12), (7, 8), (14, 5))
TIMING_FLOOR_POINTS = 2

PREPAID_POINTS = 5
FOREIGN_CARD_POINTS = 3
HIGH_RISK_BRAND_POINTS = 2
LOW_RISK_COUNTRIES = frozenset({"US", "CA", "GB"})
HIGH_RISK_BRANDS = frozenset({"discover", "diners", "jcb"})

# Lower bound of each level, highest first
LEVEL_THRESHOLDS: Tuple[Tuple[int, RiskLevel], ...] = (
    (80, RiskLevel.CRITICAL),
    (60, RiskLevel.HIGH),
    (40, RiskLevel.MEDIUM),
    (20, RiskLevel.LOW),
)
LEVEL_SYMBOLS: Mapping[RiskLevel, str] = MappingProxyType(
    {
        RiskLevel.MINIMAL: "🔵",
        RiskLevel.LOW: "🟢",
        RiskLevel.MEDIUM: "🟡",
        RiskLevel.HIGH: "🟠",
        RiskLevel.CRITICAL: "🔴",
    }
)
METER_CELLS = 10
METER_FILLED = "█"
METER_EMPTY = "░"


def _clamp(value: int, upper: int, lower: int = 0) -> int:
    return max(lower, min(value, upper))


def _banded(value: float, bands: Tuple[Tuple[float, int], ...], floor_points: int) -> int:
    for upper, points in bands:
        if value < upper:
            return points
    return floor_points


def is_zero_decimal(currency: str) -> bool:
    return currency.lower() in ZERO_DECIMAL_CURRENCIES


def to_major_units(amount: int, currency: str) -> Decimal:
    """Convert a provider amount to major currency units (cents -> dollars)"""
    if is_zero_decimal(currency):
        return Decimal(amount)
    return Decimal(amount) / 100


def format_major_amount(amount: int, currency: str) -> str:
    """Render an amount the way the provider's dashboard does"""
    if is_zero_decimal(currency):
        return str(amount)
    return f"{to_major_units(amount, currency):.2f}"


def reason_score(reason: Optional[str]) -> int:
    """Points for the dispute reason; unknown or absent reasons are weakly suspicious"""
    return _clamp(REASON_POINTS.get(reason or "", UNKNOWN_REASON_POINTS), REASON_MAX)


def amount_score(major_amount: Decimal, currency: str) -> int:
    """Bucket a major-unit amount against currency-aware thresholds"""
    thresholds = AMOUNT_THRESHOLDS.get(currency.lower(), USD_AMOUNT_THRESHOLDS)
    for threshold, points in zip(thresholds, AMOUNT_BAND_POINTS):
        if major_amount >= threshold:
            return _clamp(points, AMOUNT_MAX)
    return AMOUNT_FLOOR_POINTS


def customer_age_score(age_days: float) -> int:
    """Charge age at evaluation time, used as a proxy for account maturity"""
    return _clamp(_banded(age_days, CUSTOMER_AGE_BANDS, CUSTOMER_AGE_FLOOR_POINTS), CUSTOMER_AGE_MAX)


def timing_score(days_to_dispute: float) -> int:
    """Gap between charge and dispute; near-instant disputes score highest"""
    return _clamp(_banded(days_to_dispute, TIMING_BANDS, TIMING_FLOOR_POINTS), TIMING_MAX)


def payment_method_score(payment_method: PaymentMethod) -> int:
    """
    Additive card signals, capped at PAYMENT_METHOD_MAX.

    Missing funding/country/brand never match their rule.
    """
    points = 0
    if (payment_method.funding or "").lower() == "prepaid":
        points += PREPAID_POINTS
    if payment_method.country and payment_method.country.upper() not in LOW_RISK_COUNTRIES:
        points += FOREIGN_CARD_POINTS
    if (payment_method.brand or "").lower() in HIGH_RISK_BRANDS:
        points += HIGH_RISK_BRAND_POINTS
    return _clamp(points, PAYMENT_METHOD_MAX)


def risk_level(score: int) -> RiskLevel:
    for lower_bound, level in LEVEL_THRESHOLDS:
        if score >= lower_bound:
            return level
    return RiskLevel.MINIMAL


def risk_meter(score: int) -> str:
    """Ten-cell bar, one cell per 10 points, prefixed by the level symbol"""
    score = _clamp(score, 100)
    filled = score // 10
    empty = METER_CELLS - filled
    symbol = LEVEL_SYMBOLS[risk_level(score)]
    return f"{symbol} [{METER_FILLED * filled}{METER_EMPTY * empty}] {score}%"


def _build_assessment(score: int, factors: Tuple[str, ...]) -> RiskAssessment:
    return RiskAssessment(
        score=score,
        level=risk_level(score),
        factors=factors,
        meter=risk_meter(score),
    )


def assess(dispute: DisputeRecord, now: datetime | None = None) -> RiskAssessment:
    """
    Score a dispute for fraud/chargeback risk.

    Five independent dimensions are summed and clamped to 0-100:
    - Reason (max 30)
    - Amount in major units, currency-aware (max 25)
    - Customer age, i.e. days since the charge (max 20)
    - Days between charge and dispute (max 15)
    - Payment method signals (max 10)

    Never raises. A dispute fetched without its charge gets a mid-range
    fallback score so the report is not blocked.

    Args:
        dispute: Dispute to score
        now: Evaluation instant; pass the same value for every dispute in a run
    """
    charge = dispute.charge
    if charge is None:
        logger.warning(
            "No charge data available for dispute",
            extra={"dispute_id": dispute.id, "category": "data_quality"},
        )
        return _build_assessment(FALLBACK_SCORE, (FALLBACK_FACTOR,))

    if now is None:
        now = datetime.now(timezone.utc)

    currency = dispute.currency.lower()
    factors = []

    reason_points = reason_score(dispute.reason)
    factors.append(f"Reason: {dispute.reason or 'unknown'} (+{reason_points})")

    major_amount = to_major_units(dispute.amount, currency)
    amount_points = amount_score(major_amount, currency)
    factors.append(
        f"Amount: {format_major_amount(dispute.amount, currency)} {currency.upper()} (+{amount_points})"
    )

    age_days = (now - charge.created_at).total_seconds() / SECONDS_PER_DAY
    age_points = customer_age_score(age_days)
    factors.append(f"Customer age: {math.floor(age_days)} days (+{age_points})")

    gap_days = (dispute.created_at - charge.created_at).total_seconds() / SECONDS_PER_DAY
    timing_points = timing_score(gap_days)
    factors.append(f"Dispute timing: {math.floor(gap_days)} days after charge (+{timing_points})")

    pm = charge.payment_method
    payment_points = payment_method_score(pm)
    factors.append(
        f"Payment: {pm.brand or 'unknown'}/{pm.funding or 'unknown'}/{pm.country or 'unknown'} (+{payment_points})"
    )

    total = reason_points + amount_points + age_points + timing_points + payment_points
    return _build_assessment(_clamp(total, 100), tuple(factors))


def score_and_sort(disputes: list[DisputeRecord], now: datetime) -> list[ScoredDispute]:
    """Assess every dispute and order by descending score, ties in provider order"""
    scored = [ScoredDispute(dispute=d, assessment=assess(d, now)) for d in disputes]
    return sorted(scored, key=lambda s: s.assessment.score, reverse=True)
