"""Unit tests for rule-based transaction scoring"""

from dataclasses import replace
from datetime import datetime, timezone
from fraud_gateway.domain.models import NO_RECENT_DATA, RecentActivity, RiskLevel, Transaction
from fraud_gateway.domain.scoring import (
    RiskRules,
    analyze_transaction,
    calculate_confidence,
    determine_risk_level,
    generate_report,
    get_recommendation,
)


def _txn(**overrides) -> Transaction:
    base = Transaction(merchant="Amazon", amount=500, time="2:00 PM", user_id="u1", source="Card")
    return replace(base, **overrides)


def test_known_merchant_daytime_is_low_risk(safe_transaction: Transaction):
    """Small daytime purchase at a known merchant triggers nothing"""
    analysis = analyze_transaction(safe_transaction)

    assert analysis.risk_score == 0
    assert analysis.risk_level == RiskLevel.LOW
    assert "New merchant" not in analysis.reasons
    assert analysis.recommendation == "Process transaction normally"


def test_late_night_high_upi_new_merchant(suspicious_transaction: Transaction):
    """High amount + late night + new merchant + high UPI = 90"""
    analysis = analyze_transaction(suspicious_transaction)

    assert analysis.risk_score == 90
    assert analysis.risk_level == RiskLevel.HIGH
    assert analysis.reasons == [
        "High amount transaction",
        "Late night transaction (2:14 AM)",
        "New merchant",
        "High UPI transaction",
    ]
    assert [f.weight for f in analysis.factors] == [30, 25, 20, 15]
    assert analysis.factors[0].value == "₹32,000"
    assert analysis.recommendation == "Block transaction and verify with user immediately"


def test_amount_bands_are_exclusive():
    """Moderate band covers (10k, 20k], high band starts above 20k"""
    assert analyze_transaction(_txn(amount=10_000)).reasons == []
    assert analyze_transaction(_txn(amount=10_001)).reasons == ["Moderate amount transaction"]
    assert analyze_transaction(_txn(amount=20_000)).risk_score == 15
    assert analyze_transaction(_txn(amount=20_001)).risk_score == 30


def test_score_never_decreases_with_amount():
    """Crossing the 10k / 20k / 25k thresholds only adds risk"""
    amounts = [5_000, 10_000, 10_001, 20_000, 20_001, 25_000, 25_001, 40_000]
    scores = [analyze_transaction(_txn(amount=a, source="UPI")).risk_score for a in amounts]

    assert scores == sorted(scores)
    assert scores == [0, 0, 15, 15, 30, 30, 45, 45]


def test_unusual_hour_band():
    """Hours 5, 22 and 23 are unusual but not late night"""
    for time in ("5:15 AM", "10:30 PM", "11:59 PM"):
        analysis = analyze_transaction(_txn(time=time))
        assert analysis.risk_score == 12, time
        assert analysis.reasons == [f"Unusual time ({time})"]


def test_midnight_counts_as_late_night():
    analysis = analyze_transaction(_txn(time="12:05 AM"))
    assert analysis.reasons == ["Late night transaction (12:05 AM)"]
    assert analysis.risk_score == 25


def test_stacked_time_bands_both_fire():
    """With stacking enabled the overlapping bands add up"""
    rules = RiskRules(stack_time_bands=True)
    analysis = analyze_transaction(_txn(time="3:00 AM"), rules=rules)

    assert analysis.risk_score == 37
    assert analysis.factors[0].risk == "High"
    assert analysis.factors[1].risk == "Medium"


def test_malformed_time_falls_back_to_noon():
    analysis = analyze_transaction(_txn(time="sometime tonight"))
    assert analysis.risk_score == 0


def test_score_is_capped_at_100(suspicious_transaction: Transaction):
    rules = RiskRules(stack_time_bands=True)
    analysis = analyze_transaction(suspicious_transaction, RecentActivity(count=5, window_seconds=600), rules)

    # 30 + 25 + 12 + 20 + 15 + 10 = 112
    assert analysis.risk_score == 100
    assert len(analysis.factors) == 6


def test_velocity_requires_recent_activity_at_threshold():
    """Velocity is deterministic: it only fires on enough recent transactions"""
    txn = _txn()

    assert analyze_transaction(txn, NO_RECENT_DATA).risk_score == 0
    assert analyze_transaction(txn, RecentActivity(count=2, window_seconds=600)).risk_score == 0

    analysis = analyze_transaction(txn, RecentActivity(count=3, window_seconds=600))
    assert analysis.risk_score == 10
    assert analysis.reasons == ["Multiple transactions in short time"]
    assert analysis.factors[0].value == "High frequency"


def test_high_upi_needs_upi_source():
    assert analyze_transaction(_txn(amount=30_000, source="Card")).risk_score == 30
    assert analyze_transaction(_txn(amount=30_000, source="UPI")).risk_score == 45
    assert analyze_transaction(_txn(amount=30_000, source=None)).risk_score == 30


def test_determine_risk_level_boundaries():
    assert determine_risk_level(0) == RiskLevel.LOW
    assert determine_risk_level(39) == RiskLevel.LOW
    assert determine_risk_level(40) == RiskLevel.MEDIUM
    assert determine_risk_level(69) == RiskLevel.MEDIUM
    assert determine_risk_level(70) == RiskLevel.HIGH
    assert get_recommendation(RiskLevel.MEDIUM) == "Request additional verification before processing"


def test_calculate_confidence():
    assert calculate_confidence(0) == 60
    assert calculate_confidence(2) == 80
    assert calculate_confidence(4) == 95


def test_generate_report(suspicious_transaction: Transaction):
    """Report echoes the transaction and adds model metadata"""
    now = datetime(2026, 1, 16, 2, 14, tzinfo=timezone.utc)
    analysis = analyze_transaction(suspicious_transaction, now=now)

    report = generate_report(suspicious_transaction, analysis, now=now)

    assert report["transactionId"] == f"txn_{int(now.timestamp() * 1000)}"
    assert report["merchant"] == "Flipkart"
    assert report["amount"] == 32000
    assert report["analysis"]["riskScore"] == 90
    assert report["analysis"]["riskLevel"] == "High"
    assert report["analysis"]["factors"][1] == {"factor": "Time", "value": "2:14 AM", "risk": "High", "weight": 25}
    assert report["mlModel"] == {"version": "1.0.0", "algorithm": "Rule-based + Heuristics", "confidence": 95}
    assert report["timestamp"] == now.isoformat()


def test_generate_report_keeps_transaction_id(safe_transaction: Transaction):
    txn = replace(safe_transaction, transaction_id="txn_001")
    report = generate_report(txn, analyze_transaction(txn))
    assert report["transactionId"] == "txn_001"
