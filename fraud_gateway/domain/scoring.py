"""Rule-based transaction risk scoring - stateless fraud checks on a single transaction"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List

from fraud_gateway.domain.models import (
    NO_RECENT_DATA,
    RecentActivity,
    RiskAnalysis,
    RiskFactor,
    RiskLevel,
    Transaction,
    VelocityCheck,
)
from fraud_gateway.utils.time_utils import format_inr, parse_hour

MODEL_VERSION = "1.0.0"
MODEL_ALGORITHM = "Rule-based + Heuristics"

RECOMMENDATIONS = {
    RiskLevel.HIGH: "Block transaction and verify with user immediately",
    RiskLevel.MEDIUM: "Request additional verification before processing",
    RiskLevel.LOW: "Process transaction normally",
}


@dataclass(frozen=True)
class RiskRules:
    """
    Named thresholds and weights for the transaction scorer.

    Amounts are whole rupees. Hour bands are half-open [start, end).
    """

    high_amount: float = 20_000
    high_amount_weight: int = 30
    moderate_amount: float = 10_000
    moderate_amount_weight: int = 15

    late_night_start: int = 0
    late_night_end: int = 5
    late_night_weight: int = 25
    unusual_hour_evening: int = 22  # unusual from here to midnight
    unusual_hour_morning: int = 6  # and from midnight until here
    unusual_hour_weight: int = 12
    stack_time_bands: bool = False

    known_merchants: FrozenSet[str] = field(
        default_factory=lambda: frozenset({"Amazon", "Swiggy", "Zomato", "Netflix"})
    )
    new_merchant_weight: int = 20

    high_upi_amount: float = 25_000
    high_upi_weight: int = 15

    velocity_threshold: int = 3
    velocity_weight: int = 10

    medium_risk_score: int = 40
    high_risk_score: int = 70


DEFAULT_RULES = RiskRules()


def is_velocity_breach(velocity: VelocityCheck, threshold: int) -> bool:
    """True when enough earlier transactions fall inside the look-back window"""
    return isinstance(velocity, RecentActivity) and velocity.count >= threshold


def analyze_transaction(
    transaction: Transaction,
    velocity: VelocityCheck = NO_RECENT_DATA,
    rules: RiskRules = DEFAULT_RULES,
    now: datetime | None = None,
) -> RiskAnalysis:
    """
    Score a single transaction with additive rules.

    Rules (each adds its weight, total capped at 100):
    - Amount: > 20k high (+30), else > 10k moderate (+15)
    - Time: 00:00-04:59 late night (+25), else 22:00-05:59 unusual (+12)
    - Merchant outside the known set (+20)
    - UPI above 25k (+15)
    - Velocity: recent transaction count at or above threshold (+10)
    """
    score = 0
    reasons: List[str] = []
    factors: List[RiskFactor] = []

    def trigger(reason: str, factor: str, value: str, risk: str, weight: int) -> None:
        nonlocal score
        score += weight
        reasons.append(reason)
        factors.append(RiskFactor(factor=factor, value=value, risk=risk, weight=weight))

    amount = transaction.amount

    if amount > rules.high_amount:
        trigger("High amount transaction", "Amount", format_inr(amount), "High", rules.high_amount_weight)
    elif amount > rules.moderate_amount:
        trigger("Moderate amount transaction", "Amount", format_inr(amount), "Medium", rules.moderate_amount_weight)

    hour = parse_hour(transaction.time)
    late_night = rules.late_night_start <= hour < rules.late_night_end
    unusual_hour = hour >= rules.unusual_hour_evening or hour < rules.unusual_hour_morning

    if late_night:
        trigger(f"Late night transaction ({transaction.time})", "Time", transaction.time, "High", rules.late_night_weight)
    if unusual_hour and (rules.stack_time_bands or not late_night):
        trigger(f"Unusual time ({transaction.time})", "Time", transaction.time, "Medium", rules.unusual_hour_weight)

    if transaction.merchant not in rules.known_merchants:
        trigger("New merchant", "Merchant", transaction.merchant, "Medium", rules.new_merchant_weight)

    if transaction.source == "UPI" and amount > rules.high_upi_amount:
        trigger("High UPI transaction", "Payment Method", transaction.source, "Medium", rules.high_upi_weight)

    if is_velocity_breach(velocity, rules.velocity_threshold):
        trigger("Multiple transactions in short time", "Velocity", "High frequency", "Medium", rules.velocity_weight)

    risk_score = max(0, min(score, 100))
    risk_level = determine_risk_level(risk_score, rules)

    return RiskAnalysis(
        risk_score=risk_score,
        risk_level=risk_level,
        reasons=reasons,
        factors=factors,
        recommendation=get_recommendation(risk_level),
        timestamp=now or datetime.now(timezone.utc),
    )


def determine_risk_level(score: int, rules: RiskRules = DEFAULT_RULES) -> RiskLevel:
    """
    Map risk score to a level.

    - 0-39: Low
    - 40-69: Medium
    - 70+: High
    """
    if score >= rules.high_risk_score:
        return RiskLevel.HIGH
    elif score >= rules.medium_risk_score:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW


def get_recommendation(level: RiskLevel) -> str:
    return RECOMMENDATIONS[level]


def calculate_confidence(factor_count: int) -> int:
    """Confidence grows 10 points per triggered factor from 60, capped at 95"""
    return min(60 + factor_count * 10, 95)


def generate_report(
    transaction: Transaction,
    analysis: RiskAnalysis,
    now: datetime | None = None,
) -> Dict[str, Any]:
    """Wrap an analysis with the transaction echo and model metadata"""
    now = now or datetime.now(timezone.utc)
    transaction_id = transaction.transaction_id or f"txn_{int(now.timestamp() * 1000)}"

    return {
        "transactionId": transaction_id,
        "merchant": transaction.merchant,
        "amount": transaction.amount,
        "time": transaction.time,
        "source": transaction.source,
        "analysis": {
            "riskScore": analysis.risk_score,
            "riskLevel": analysis.risk_level.value,
            "reasons": list(analysis.reasons),
            "factors": [
                {"factor": f.factor, "value": f.value, "risk": f.risk, "weight": f.weight}
                for f in analysis.factors
            ],
            "recommendation": analysis.recommendation,
        },
        "mlModel": {
            "version": MODEL_VERSION,
            "algorithm": MODEL_ALGORITHM,
            "confidence": calculate_confidence(len(analysis.factors)),
        },
        "timestamp": now.isoformat(),
    }
