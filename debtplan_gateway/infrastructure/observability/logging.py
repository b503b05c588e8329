"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

# Chatty third-party loggers kept at WARNING so plan logs stay readable
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping every record with UTC time, level and service name"""

    def __init__(self, *args: Any, service_name: str = "debtplan-gateway", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "debtplan-gateway") -> None:
    """Route all logging to stdout as one JSON object per line"""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", service_name=service_name)
    )
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))


def log_risk_assessment(request_id: str, user_id: str | None, tier: str, dti_ratio: float) -> None:
    """Log structured DTI outcome"""
    logging.info(
        "Risk assessment completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "risk_assessment",
            "risk_tier": tier,
            "dti_ratio": round(dti_ratio, 2),
        },
    )


def log_plan(
    request_id: str,
    user_id: str | None,
    strategy: str,
    monthly_payment: float,
    months_to_payoff: int,
    total_interest: float,
    duration_ms: float,
) -> None:
    """Log structured plan outcome for analysis"""
    logging.info(
        "Repayment plan computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "plan_complete",
            "strategy": strategy,
            "monthly_payment": monthly_payment,
            "months_to_payoff": months_to_payoff,
            "total_interest": total_interest,
            "duration_ms": duration_ms,
        },
    )


def log_plan_rejected(request_id: str, user_id: str | None, reason: str, detail: str) -> None:
    """Log a plan request the engine refused, with the user-facing reason"""
    logging.warning(
        "Repayment plan rejected",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "plan_rejected",
            "reason": reason,
            "detail": detail,
        },
    )
