"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from fraud_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_risk_assessment(
    request_id: str,
    user_id: str | None,
    risk_score: int,
    risk_level: str,
    duration_ms: float,
) -> None:
    """Log structured assessment outcome for analysis"""
    logging.info(
        "Risk assessment completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "risk_assessment",
            "risk_score": risk_score,
            "risk_level": risk_level,
            "duration_ms": duration_ms,
        },
    )


def log_anomaly_check(request_id: str, user_id: str, is_anomalous: bool, risk_score: int) -> None:
    logging.info(
        "Anomaly check completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "anomaly_check",
            "is_anomalous": is_anomalous,
            "risk_score": risk_score,
        },
    )
