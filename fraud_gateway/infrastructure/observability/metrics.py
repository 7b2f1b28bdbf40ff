"""Prometheus metrics for risk levels, anomaly rates and profile storage health"""

from prometheus_client import Counter, Histogram

from fraud_gateway.domain.models import RiskLevel

# Scoring metrics
risk_assessment_counter = Counter(
    "fraud_risk_assessment_total",
    "Rule-based risk assessments",
    ["level"],  # Low | Medium | High
)

risk_score_histogram = Histogram(
    "fraud_risk_score",
    "Distribution of rule-based risk scores",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

anomaly_check_counter = Counter(
    "fraud_anomaly_check_total",
    "Behavioral anomaly checks",
    ["outcome"],  # anomalous | normal
)

# Profile storage
storage_failure_counter = Counter(
    "fraud_profile_storage_failures_total",
    "Failed profile storage operations",
    ["operation"],  # load | save | delete
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_assessment(level: RiskLevel, score: int) -> None:
    risk_assessment_counter.labels(level=level.value).inc()
    risk_score_histogram.observe(score)


def record_anomaly_check(is_anomalous: bool) -> None:
    anomaly_check_counter.labels(outcome="anomalous" if is_anomalous else "normal").inc()
