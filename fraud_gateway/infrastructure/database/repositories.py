"""Data access layer for risk assessments"""

import uuid
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from fraud_gateway.infrastructure.database.models import RiskAssessment
from fraud_gateway.domain.models import RiskAnalysis, Transaction


class AssessmentRepository:
    """Repository for rule-based risk assessments"""

    def __init__(self, db: Session):
        self.db = db

    def create_assessment(
        self,
        transaction: Transaction,
        transaction_ref: str,
        analysis: RiskAnalysis,
    ) -> RiskAssessment:
        """Stage an assessment; the caller commits"""
        db_assessment = RiskAssessment(
            user_id=transaction.user_id,
            transaction_ref=transaction_ref,
            merchant=transaction.merchant,
            amount=transaction.amount,
            risk_score=analysis.risk_score,
            risk_level=analysis.risk_level.value,
            reasons=list(analysis.reasons),
        )
        self.db.add(db_assessment)
        self.db.flush()  # Get ID without committing
        return db_assessment

    def get_assessment(self, assessment_id: uuid.UUID) -> Optional[RiskAssessment]:
        return self.db.get(RiskAssessment, assessment_id)

    def get_assessments_by_user(self, user_id: str, limit: int = 20) -> List[RiskAssessment]:
        """Fetch recent assessments for a user"""
        return (
            self.db.query(RiskAssessment)
            .filter(RiskAssessment.user_id == user_id)
            .order_by(RiskAssessment.created_at.desc())
            .limit(limit)
            .all()
        )

    def set_status(self, assessment: RiskAssessment, status: str, reason: str | None = None) -> RiskAssessment:
        assessment.status = status
        assessment.status_reason = reason
        self.db.flush()
        return assessment

    def get_stats(self) -> Dict[str, Any]:
        """Totals by risk level and review status, plus the mean score"""
        total, average = self.db.query(
            func.count(RiskAssessment.id),
            func.avg(RiskAssessment.risk_score),
        ).one()

        by_level = dict(
            self.db.query(RiskAssessment.risk_level, func.count(RiskAssessment.id))
            .group_by(RiskAssessment.risk_level)
            .all()
        )
        by_status = dict(
            self.db.query(RiskAssessment.status, func.count(RiskAssessment.id))
            .group_by(RiskAssessment.status)
            .all()
        )

        return {
            "total": total,
            "average_risk_score": round(float(average), 1) if average is not None else 0.0,
            "by_level": by_level,
            "by_status": by_status,
        }
