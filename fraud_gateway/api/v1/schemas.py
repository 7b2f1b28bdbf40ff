"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date as date_type, datetime
from typing import Dict, List, Optional

from fraud_gateway.domain.models import (
    AnomalyResult,
    BehavioralProfile,
    Insights,
    ParsedTransaction,
    Transaction,
)


class TransactionSchema(BaseModel):
    """Transaction as submitted by clients"""

    merchant: str = Field(..., min_length=1, description="Merchant or payee name")
    amount: float = Field(..., gt=0, description="Amount in rupees")
    time: str = Field(..., min_length=1, description='Wall-clock time, "H:MM AM/PM"')
    source: Optional[str] = Field(None, description="Payment rail, e.g. UPI or Card")
    category: Optional[str] = None
    user_id: Optional[str] = Field(None, min_length=1)
    transaction_id: Optional[str] = None
    date: Optional[date_type] = None

    def to_domain(self, user_id: str | None = None) -> Transaction:
        return Transaction(
            merchant=self.merchant,
            amount=self.amount,
            time=self.time,
            user_id=user_id or self.user_id or "anonymous",
            source=self.source,
            category=self.category,
            transaction_id=self.transaction_id,
            date=self.date,
        )


class RiskFactorSchema(BaseModel):
    factor: str
    value: str
    risk: str
    weight: int


class RiskAnalysisSchema(BaseModel):
    riskScore: int
    riskLevel: str
    reasons: List[str]
    factors: List[RiskFactorSchema]
    recommendation: str


class ModelInfoSchema(BaseModel):
    version: str
    algorithm: str
    confidence: int


class RiskReportResponse(BaseModel):
    """Response for POST /v1/risk/analyze"""

    assessmentId: str
    transactionId: str
    merchant: str
    amount: float
    time: str
    source: Optional[str] = None
    analysis: RiskAnalysisSchema
    mlModel: ModelInfoSchema
    timestamp: str


class AssessmentItem(BaseModel):
    """Single assessment in history"""

    assessment_id: str
    transaction_ref: str
    merchant: str
    amount: float
    risk_score: int
    risk_level: str
    reasons: List[str]
    status: str
    created_at: str


class AssessmentHistoryResponse(BaseModel):
    """Response for GET /v1/risk/history"""

    user_id: str
    assessments: List[AssessmentItem]


class ReportFraudRequest(BaseModel):
    reason: Optional[str] = None


class AssessmentStatusResponse(BaseModel):
    assessment_id: str
    status: str
    reason: Optional[str] = None
    action: str


class RiskStatsResponse(BaseModel):
    total: int
    average_risk_score: float
    by_level: Dict[str, int]
    by_status: Dict[str, int]


class InitProfileRequest(BaseModel):
    user_id: str = Field(..., min_length=1, description="User identifier")


class BehaviorTransactionRequest(BaseModel):
    """Request body for POST /v1/behavior/analyze and /v1/behavior/update"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    transaction: TransactionSchema


class SpendingPatternsSchema(BaseModel):
    average_transaction: float
    max_transaction: float
    min_transaction: Optional[float] = None
    total_spent: float
    transaction_count: int
    frequent_merchants: Dict[str, int]
    frequent_categories: Dict[str, int]
    time_patterns: Dict[int, int]
    day_patterns: Dict[str, int]
    payment_methods: Dict[str, int]


class ProfileResponse(BaseModel):
    """Response for POST /v1/behavior/init"""

    user_id: str
    patterns: SpendingPatternsSchema
    last_updated: datetime
    risk_factors: List[str]
    trust_score: int

    @classmethod
    def from_domain(cls, profile: BehavioralProfile) -> "ProfileResponse":
        p = profile.patterns
        return cls(
            user_id=profile.user_id,
            patterns=SpendingPatternsSchema(
                average_transaction=p.average_transaction,
                max_transaction=p.max_transaction,
                min_transaction=p.min_transaction,
                total_spent=p.total_spent,
                transaction_count=p.transaction_count,
                frequent_merchants=p.frequent_merchants,
                frequent_categories=p.frequent_categories,
                time_patterns=p.time_patterns,
                day_patterns=p.day_patterns,
                payment_methods=p.payment_methods,
            ),
            last_updated=profile.last_updated,
            risk_factors=list(profile.risk_factors),
            trust_score=profile.trust_score,
        )


class AnomalyResponse(BaseModel):
    """Response for POST /v1/behavior/analyze"""

    is_anomalous: bool
    reasons: List[str]
    risk_score: int

    @classmethod
    def from_domain(cls, result: AnomalyResult) -> "AnomalyResponse":
        return cls(is_anomalous=result.is_anomalous, reasons=result.reasons, risk_score=result.risk_score)


class RankedItemSchema(BaseModel):
    name: str
    count: int


class InsightsResponse(BaseModel):
    """Response for GET /v1/behavior/insights"""

    user_id: str
    top_merchants: List[RankedItemSchema]
    top_categories: List[RankedItemSchema]
    preferred_payment_method: str
    most_active_time: str
    most_active_day: str
    spending_trend: str

    @classmethod
    def from_domain(cls, user_id: str, insights: Insights) -> "InsightsResponse":
        return cls(
            user_id=user_id,
            top_merchants=[RankedItemSchema(name=i.name, count=i.count) for i in insights.top_merchants],
            top_categories=[RankedItemSchema(name=i.name, count=i.count) for i in insights.top_categories],
            preferred_payment_method=insights.preferred_payment_method,
            most_active_time=insights.most_active_time,
            most_active_day=insights.most_active_day,
            spending_trend=insights.spending_trend,
        )


class ParseRequest(BaseModel):
    text: str = Field(..., min_length=1, description="SMS or notification body")


class ParseResponse(BaseModel):
    """Response for POST /v1/transactions/parse"""

    merchant: Optional[str] = None
    amount: Optional[float] = None
    time: Optional[str] = None
    date: Optional[str] = None
    source: Optional[str] = None
    type: Optional[str] = None
    reference: Optional[str] = None
    balance: Optional[float] = None
    confidence: int
    complete: bool
    summary: str

    @classmethod
    def from_domain(cls, parsed: ParsedTransaction, complete: bool, summary: str) -> "ParseResponse":
        return cls(
            merchant=parsed.merchant,
            amount=parsed.amount,
            time=parsed.time,
            date=parsed.date,
            source=parsed.source,
            type=parsed.type,
            reference=parsed.reference,
            balance=parsed.balance,
            confidence=parsed.confidence,
            complete=complete,
            summary=summary,
        )
