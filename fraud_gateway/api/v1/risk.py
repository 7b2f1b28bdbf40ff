"""Rule-based risk endpoints - analyze, history, review and stats"""

import time
import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from fraud_gateway.api.v1.schemas import (
    AssessmentHistoryResponse,
    AssessmentItem,
    AssessmentStatusResponse,
    ReportFraudRequest,
    RiskReportResponse,
    RiskStatsResponse,
    TransactionSchema,
)
from fraud_gateway.api.dependencies import get_request_id, get_risk_rules, get_risk_velocity_tracker
from fraud_gateway.config import settings
from fraud_gateway.domain.models import NO_RECENT_DATA
from fraud_gateway.domain.scoring import RiskRules, analyze_transaction, generate_report
from fraud_gateway.infrastructure.database.session import get_db
from fraud_gateway.infrastructure.database.repositories import AssessmentRepository
from fraud_gateway.infrastructure.database.models import RiskAssessment
from fraud_gateway.infrastructure.observability.metrics import record_assessment
from fraud_gateway.infrastructure.observability.logging import log_risk_assessment
from fraud_gateway.services.velocity import VelocityTracker

router = APIRouter()


@router.post("/risk/analyze", response_model=RiskReportResponse)
def analyze_risk(
    request_body: TransactionSchema,
    request: Request,
    db: Session = Depends(get_db),
    rules: RiskRules = Depends(get_risk_rules),
    velocity_tracker: VelocityTracker = Depends(get_risk_velocity_tracker),
):
    """
    Score a transaction with the rule engine and record the assessment.

    Flow:
    1. Look up the user's recent transaction count (velocity)
    2. Apply the additive rules
    3. Persist the assessment, then record it for velocity
    4. Return the report with model metadata
    """
    start_time = time.time()
    request_id = get_request_id(request)
    transaction = request_body.to_domain()

    try:
        velocity = velocity_tracker.peek(request_body.user_id) if request_body.user_id else NO_RECENT_DATA
        analysis = analyze_transaction(transaction, velocity, rules)
        report = generate_report(transaction, analysis)

        assessment_repo = AssessmentRepository(db)
        db_assessment = assessment_repo.create_assessment(
            transaction=transaction,
            transaction_ref=report["transactionId"],
            analysis=analysis,
        )
        db.commit()

        # only committed assessments count toward velocity
        if request_body.user_id:
            velocity_tracker.record(request_body.user_id)

        duration_ms = (time.time() - start_time) * 1000
        record_assessment(analysis.risk_level, analysis.risk_score)
        log_risk_assessment(request_id, request_body.user_id, analysis.risk_score, analysis.risk_level.value, duration_ms)

        return RiskReportResponse(assessmentId=str(db_assessment.id), **report)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/risk/history", response_model=AssessmentHistoryResponse)
def get_risk_history(
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
):
    """Retrieve recent risk assessments for a user, newest first"""
    assessment_repo = AssessmentRepository(db)
    assessments = assessment_repo.get_assessments_by_user(user_id, limit=settings.history_limit)

    return AssessmentHistoryResponse(
        user_id=user_id,
        assessments=[_to_item(a) for a in assessments],
    )


@router.get("/risk/stats", response_model=RiskStatsResponse)
def get_risk_stats(db: Session = Depends(get_db)):
    """Aggregate counts by risk level and review status"""
    return RiskStatsResponse(**AssessmentRepository(db).get_stats())


@router.post("/risk/{assessment_id}/report", response_model=AssessmentStatusResponse)
def report_fraud(
    assessment_id: str,
    request_body: ReportFraudRequest | None = None,
    db: Session = Depends(get_db),
):
    """Mark an assessed transaction as fraud reported by the user"""
    reason = (request_body.reason if request_body else None) or "User reported as fraud"
    assessment = _set_status(db, assessment_id, "Reported", reason)

    return AssessmentStatusResponse(
        assessment_id=str(assessment.id),
        status=assessment.status,
        reason=assessment.status_reason,
        action="Transaction blocked and under investigation",
    )


@router.post("/risk/{assessment_id}/verify", response_model=AssessmentStatusResponse)
def verify_transaction(assessment_id: str, db: Session = Depends(get_db)):
    """Mark an assessed transaction as legitimate"""
    assessment = _set_status(db, assessment_id, "Verified")

    return AssessmentStatusResponse(
        assessment_id=str(assessment.id),
        status=assessment.status,
        action="Transaction marked as legitimate",
    )


def _set_status(db: Session, assessment_id: str, status: str, reason: str | None = None) -> RiskAssessment:
    try:
        assessment_uuid = uuid.UUID(assessment_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid assessment ID format")

    assessment_repo = AssessmentRepository(db)
    assessment = assessment_repo.get_assessment(assessment_uuid)
    if not assessment:
        raise HTTPException(status_code=404, detail="Assessment not found")

    assessment_repo.set_status(assessment, status, reason)
    db.commit()
    logging.info("Assessment status changed", extra={"assessment_id": assessment_id, "status": status})
    return assessment


def _to_item(assessment: RiskAssessment) -> AssessmentItem:
    return AssessmentItem(
        assessment_id=str(assessment.id),
        transaction_ref=assessment.transaction_ref,
        merchant=assessment.merchant,
        amount=assessment.amount,
        risk_score=assessment.risk_score,
        risk_level=assessment.risk_level,
        reasons=assessment.reasons,
        status=assessment.status,
        created_at=assessment.created_at.isoformat(),
    )
