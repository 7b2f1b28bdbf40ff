"""SQLAlchemy ORM models for profiles and risk assessments"""

import uuid
from sqlalchemy import Column, DateTime, Float, Integer, JSON, Text, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class BehavioralProfileRecord(Base):
    """Serialized behavioral profile, one row per user"""

    __tablename__ = "behavioral_profile"

    user_id = Column(Text, primary_key=True)
    profile = Column(JSON, nullable=False)
    trust_score = Column(Integer, nullable=False, default=50)
    transaction_count = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class RiskAssessment(Base):
    """Outcome of one rule-based transaction analysis"""

    __tablename__ = "risk_assessment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=True, index=True)
    transaction_ref = Column(Text, nullable=False)
    merchant = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    risk_score = Column(Integer, nullable=False)
    risk_level = Column(Text, nullable=False)
    reasons = Column(JSON, nullable=False)
    status = Column(Text, nullable=False, default="Pending")  # Pending | Reported | Verified
    status_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
