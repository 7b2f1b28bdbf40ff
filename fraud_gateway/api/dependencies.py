"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from fraud_gateway.config import settings
from fraud_gateway.domain.behavior import AnomalyThresholds
from fraud_gateway.domain.scoring import RiskRules
from fraud_gateway.infrastructure.database.session import get_db
from fraud_gateway.infrastructure.stores import SqlProfileStore
from fraud_gateway.services.profiles import BehavioralProfileService, ProfileCache
from fraud_gateway.services.velocity import VelocityTracker


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


@lru_cache
def get_risk_rules() -> RiskRules:
    return RiskRules(
        stack_time_bands=settings.stack_time_bands,
        velocity_threshold=settings.velocity_threshold,
    )


@lru_cache
def get_risk_velocity_tracker() -> VelocityTracker:
    """Process-wide window of scored transactions per user"""
    return VelocityTracker(settings.velocity_window_seconds)


@lru_cache
def get_behavior_velocity_tracker() -> VelocityTracker:
    """Process-wide window of committed profile updates per user"""
    return VelocityTracker(settings.velocity_window_seconds)


@lru_cache
def get_profile_cache() -> ProfileCache:
    return ProfileCache(max_profiles=settings.profile_cache_size)


def get_profile_service(
    db: Session = Depends(get_db),
    cache: ProfileCache = Depends(get_profile_cache),
    velocity: VelocityTracker = Depends(get_behavior_velocity_tracker),
) -> BehavioralProfileService:
    """Provide a profile service bound to this request's database session"""
    return BehavioralProfileService(
        store=SqlProfileStore(db),
        cache=cache,
        velocity=velocity,
        fail_on_storage_error=settings.fail_on_storage_error,
        thresholds=AnomalyThresholds(velocity_threshold=settings.velocity_threshold),
    )
