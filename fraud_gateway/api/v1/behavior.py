"""Behavioral profile endpoints - init, analyze, update, insights"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from fraud_gateway.api.v1.schemas import (
    AnomalyResponse,
    BehaviorTransactionRequest,
    InitProfileRequest,
    InsightsResponse,
    ProfileResponse,
)
from fraud_gateway.api.dependencies import get_profile_service, get_request_id
from fraud_gateway.domain.exceptions import StorageError
from fraud_gateway.infrastructure.observability.logging import log_anomaly_check
from fraud_gateway.services.profiles import BehavioralProfileService

router = APIRouter()


def _storage_unavailable(e: StorageError, request_id: str) -> HTTPException:
    logging.error(f"Profile storage error: {e}", extra={"request_id": request_id, "user_id": e.user_id})
    return HTTPException(status_code=503, detail="Profile storage unavailable")


@router.post("/behavior/init", response_model=ProfileResponse)
def init_profile(
    request_body: InitProfileRequest,
    request: Request,
    service: BehavioralProfileService = Depends(get_profile_service),
):
    """Load or create the user's behavioral profile"""
    try:
        profile = service.initialize(request_body.user_id)
    except StorageError as e:
        raise _storage_unavailable(e, get_request_id(request))

    return ProfileResponse.from_domain(profile)


@router.post("/behavior/analyze", response_model=AnomalyResponse)
def analyze_behavior(
    request_body: BehaviorTransactionRequest,
    request: Request,
    service: BehavioralProfileService = Depends(get_profile_service),
):
    """
    Compare a transaction against the user's history.

    Read-only: call /behavior/update afterwards to commit the transaction.
    """
    request_id = get_request_id(request)
    transaction = request_body.transaction.to_domain(user_id=request_body.user_id)

    try:
        result = service.analyze_transaction(transaction)
    except StorageError as e:
        raise _storage_unavailable(e, request_id)

    log_anomaly_check(request_id, request_body.user_id, result.is_anomalous, result.risk_score)
    return AnomalyResponse.from_domain(result)


@router.post("/behavior/update", status_code=status.HTTP_204_NO_CONTENT)
def update_behavior(
    request_body: BehaviorTransactionRequest,
    request: Request,
    service: BehavioralProfileService = Depends(get_profile_service),
):
    """Fold a transaction into the user's profile and persist it"""
    transaction = request_body.transaction.to_domain(user_id=request_body.user_id)

    try:
        service.update_with_transaction(transaction)
    except StorageError as e:
        raise _storage_unavailable(e, get_request_id(request))

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/behavior/insights", response_model=InsightsResponse)
def get_insights(
    request: Request,
    user_id: str = Query(..., description="User identifier"),
    service: BehavioralProfileService = Depends(get_profile_service),
):
    """Top merchants, categories and habits derived from the profile"""
    try:
        insights = service.get_insights(user_id)
    except StorageError as e:
        raise _storage_unavailable(e, get_request_id(request))

    return InsightsResponse.from_domain(user_id, insights)


@router.delete("/behavior/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def clear_profile(
    user_id: str,
    request: Request,
    service: BehavioralProfileService = Depends(get_profile_service),
):
    """Forget the user's profile"""
    try:
        service.clear(user_id)
    except StorageError as e:
        raise _storage_unavailable(e, get_request_id(request))

    return Response(status_code=status.HTTP_204_NO_CONTENT)
