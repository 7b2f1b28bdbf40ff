"""Behavioral anomaly detection - compares transactions against a user's running baseline"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Tuple, TypeVar

from fraud_gateway.domain.models import (
    NO_RECENT_DATA,
    AnomalyResult,
    BehavioralProfile,
    Insights,
    RankedItem,
    SpendingPatterns,
    Transaction,
    VelocityCheck,
)
from fraud_gateway.domain.scoring import is_velocity_breach
from fraud_gateway.utils.time_utils import parse_hour, weekday_name

K = TypeVar("K")

HIGH_VALUE_FACTOR = "High value transactions"
LATE_NIGHT_FACTOR = "Late night activity"


@dataclass(frozen=True)
class AnomalyThresholds:
    """Multipliers, weights and cut-offs for behavioral checks"""

    average_multiplier: float = 3.0
    average_weight: int = 25
    max_multiplier: float = 1.5
    max_weight: int = 20
    new_merchant_weight: int = 15
    late_night_end: int = 6
    rare_hour_count: int = 2
    late_night_weight: int = 20
    new_method_weight: int = 10
    velocity_threshold: int = 3
    velocity_weight: int = 10
    anomaly_score: int = 30  # anomalous strictly above this

    base_trust: int = 50
    high_value_amount: float = 50_000


DEFAULT_THRESHOLDS = AnomalyThresholds()


def new_profile(user_id: str, now: datetime, thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS) -> BehavioralProfile:
    return BehavioralProfile(
        user_id=user_id,
        patterns=SpendingPatterns(),
        last_updated=now,
        risk_factors=[],
        trust_score=thresholds.base_trust,
    )


def detect_anomalies(
    profile: BehavioralProfile,
    transaction: Transaction,
    velocity: VelocityCheck = NO_RECENT_DATA,
    thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS,
) -> AnomalyResult:
    """
    Compare a transaction against the profile without modifying it.

    Checks (additive):
    - Amount above 3x the running average (+25)
    - Amount above 1.5x the largest seen (+20)
    - Merchant never seen (+15)
    - Late night (00:00-05:59) at an hour seen fewer than twice (+20)
    - Payment method never seen (+10)
    - Velocity breach (+10)
    """
    patterns = profile.patterns
    amount = transaction.amount
    reasons: List[str] = []
    score = 0

    average = patterns.average_transaction
    if amount > average * thresholds.average_multiplier:
        if average > 0:
            reasons.append(f"Amount is {int(amount / average + 0.5)}x your average")
        else:
            reasons.append("Amount is above your usual spending")
        score += thresholds.average_weight

    if amount > patterns.max_transaction * thresholds.max_multiplier:
        reasons.append("Highest transaction amount ever")
        score += thresholds.max_weight

    if patterns.frequent_merchants.get(transaction.merchant, 0) == 0:
        reasons.append("First time transaction with this merchant")
        score += thresholds.new_merchant_weight

    hour = parse_hour(transaction.time)
    if 0 <= hour < thresholds.late_night_end and patterns.time_patterns.get(hour, 0) < thresholds.rare_hour_count:
        reasons.append("Unusual transaction time (late night)")
        score += thresholds.late_night_weight

    if patterns.payment_methods.get(transaction.source, 0) == 0:
        reasons.append("First time using this payment method")
        score += thresholds.new_method_weight

    if is_velocity_breach(velocity, thresholds.velocity_threshold):
        reasons.append("Multiple transactions in short time")
        score += thresholds.velocity_weight

    return AnomalyResult(
        is_anomalous=score > thresholds.anomaly_score,
        reasons=reasons,
        risk_score=min(score, 100),
    )


def _increment(histogram: Dict[K, int], key: K) -> None:
    histogram[key] = histogram.get(key, 0) + 1


def apply_transaction(
    profile: BehavioralProfile,
    transaction: Transaction,
    now: datetime,
    thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS,
) -> None:
    """Fold a transaction into the profile aggregate (mutates in place)"""
    patterns = profile.patterns
    amount = transaction.amount

    patterns.transaction_count += 1
    patterns.total_spent += amount
    patterns.average_transaction = patterns.total_spent / patterns.transaction_count
    patterns.max_transaction = max(patterns.max_transaction, amount)
    patterns.min_transaction = amount if patterns.min_transaction is None else min(patterns.min_transaction, amount)

    _increment(patterns.frequent_merchants, transaction.merchant)
    if transaction.category:
        _increment(patterns.frequent_categories, transaction.category)

    hour = parse_hour(transaction.time)
    _increment(patterns.time_patterns, hour)

    # Calendar day of the transaction when known, otherwise the day it was recorded
    _increment(patterns.day_patterns, weekday_name(transaction.date or now.date()))

    if transaction.source:
        _increment(patterns.payment_methods, transaction.source)

    # Trust uses the risk factors known before this transaction
    profile.trust_score = compute_trust_score(patterns.transaction_count, len(profile.risk_factors), thresholds)

    for factor in detect_risk_factors(transaction, thresholds):
        if factor not in profile.risk_factors:
            profile.risk_factors.append(factor)

    profile.last_updated = now


def compute_trust_score(transaction_count: int, risk_factor_count: int, thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS) -> int:
    """
    Trust score from activity volume and accumulated risk factors.

    Base 50, one volume bonus (+20 above 50 transactions, +10 above 20,
    +5 above 10), minus 5 per risk factor, clamped to 0-100.
    """
    score = thresholds.base_trust

    if transaction_count > 50:
        score += 20
    elif transaction_count > 20:
        score += 10
    elif transaction_count > 10:
        score += 5

    score -= risk_factor_count * 5

    return max(0, min(100, score))


def detect_risk_factors(transaction: Transaction, thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS) -> List[str]:
    factors = []

    if transaction.amount > thresholds.high_value_amount:
        factors.append(HIGH_VALUE_FACTOR)

    hour = parse_hour(transaction.time)
    if 0 <= hour < thresholds.late_night_end:
        factors.append(LATE_NIGHT_FACTOR)

    return factors


def _ranked(histogram: Dict[K, int]) -> List[Tuple[K, int]]:
    # sorted() is stable, so ties keep first-seen order
    return sorted(histogram.items(), key=lambda item: item[1], reverse=True)


def build_insights(profile: BehavioralProfile | None) -> Insights:
    """Summarize the profile into display-ready insights"""
    if profile is None:
        return Insights(
            top_merchants=[],
            top_categories=[],
            preferred_payment_method="Unknown",
            most_active_time="Unknown",
            most_active_day="Unknown",
            spending_trend="No data",
        )

    patterns = profile.patterns

    top_merchants = [RankedItem(name=name, count=count) for name, count in _ranked(patterns.frequent_merchants)[:5]]
    top_categories = [RankedItem(name=name, count=count) for name, count in _ranked(patterns.frequent_categories)[:5]]

    methods = _ranked(patterns.payment_methods)
    preferred_payment_method = methods[0][0] if methods else "Unknown"

    hours = _ranked(patterns.time_patterns)
    if hours:
        hour = hours[0][0]
        most_active_time = f"{hour}:00 - {hour + 1}:00"
    else:
        most_active_time = "Unknown"

    days = _ranked(patterns.day_patterns)
    most_active_day = days[0][0] if days else "Unknown"

    average = patterns.average_transaction
    if average > 5000:
        spending_trend = "High spender"
    elif average > 1000:
        spending_trend = "Moderate spender"
    else:
        spending_trend = "Conservative spender"

    return Insights(
        top_merchants=top_merchants,
        top_categories=top_categories,
        preferred_payment_method=preferred_payment_method,
        most_active_time=most_active_time,
        most_active_day=most_active_day,
        spending_trend=spending_trend,
    )
