"""DTI risk assessment endpoints"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from debtplan_gateway.api.dependencies import get_request_id
from debtplan_gateway.api.v1.debts import normalize_inputs
from debtplan_gateway.api.v1.errors import domain_http_error, internal_error
from debtplan_gateway.api.v1.schemas import (
    RiskAssessmentRequest,
    RiskAssessmentResponse,
    RiskHistoryItem,
    RiskHistoryResponse,
)
from debtplan_gateway.config import settings
from debtplan_gateway.domain.exceptions import DomainException, InsufficientIncomeData
from debtplan_gateway.domain.models import RiskAssessment
from debtplan_gateway.domain.normalizer import normalize_income
from debtplan_gateway.domain.risk import TIER_FACTOR_LEVELS, assess_risk
from debtplan_gateway.infrastructure.database.repositories import (
    DebtRepository,
    IncomeRepository,
    RiskAssessmentRepository,
    to_debt_record,
    to_income_profile,
)
from debtplan_gateway.infrastructure.database.session import get_db
from debtplan_gateway.infrastructure.observability.logging import log_risk_assessment
from debtplan_gateway.infrastructure.observability.metrics import record_risk_tier

router = APIRouter()


def risk_response(assessment: RiskAssessment) -> RiskAssessmentResponse:
    return RiskAssessmentResponse(
        dti_ratio=round(assessment.dti_ratio, 2),
        tier=assessment.tier.value,
        label=assessment.label,
        guidance=assessment.guidance,
        factor_level=TIER_FACTOR_LEVELS[assessment.tier],
        total_minimum_payment=assessment.total_minimum_payment,
        income_base=assessment.income_base,
        income_basis=assessment.income_basis,
        disposable_income=assessment.disposable_income,
    )


@router.post("/risk-assessment", response_model=RiskAssessmentResponse)
def assess_inline(request_body: RiskAssessmentRequest, request: Request):
    """
    Stateless DTI assessment from inline debts and income.

    DTI = sum of minimum payments / income base * 100, where the income base
    is gross income when present and net income otherwise.
    """
    request_id = get_request_id(request)

    try:
        debts = normalize_inputs(request_body.debts)
        income = normalize_income(request_body.income.model_dump())
        assessment = assess_risk(debts, income)

    except InsufficientIncomeData as e:
        record_risk_tier("insufficient_data")
        logging.warning(f"Insufficient income data: {e}", extra={"request_id": request_id})
        raise domain_http_error(e)

    except DomainException as e:
        logging.warning(f"Invalid risk input: {e}", extra={"request_id": request_id})
        raise domain_http_error(e)

    record_risk_tier(assessment.tier.value)
    log_risk_assessment(request_id, None, assessment.tier.value, assessment.dti_ratio)
    return risk_response(assessment)


@router.post("/users/{user_id}/risk-assessment", response_model=RiskAssessmentResponse)
def assess_user(user_id: str, request: Request, db: Session = Depends(get_db)):
    """
    Assess the user's stored debts against their stored income.

    The result is recomputed every time and then cached as a snapshot;
    cached snapshots are never read back as input.
    """
    request_id = get_request_id(request)

    try:
        income_row = IncomeRepository(db).get(user_id)
        if income_row is None:
            raise InsufficientIncomeData(f"No income recorded for user {user_id}")

        debts = [to_debt_record(row) for row in DebtRepository(db).get_debts_by_user(user_id)]
        assessment = assess_risk(debts, to_income_profile(income_row))

        RiskAssessmentRepository(db).create_snapshot(user_id, assessment)
        db.commit()

    except InsufficientIncomeData as e:
        db.rollback()
        record_risk_tier("insufficient_data")
        logging.warning(f"Insufficient income data: {e}", extra={"request_id": request_id})
        raise domain_http_error(e)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise internal_error()

    record_risk_tier(assessment.tier.value)
    log_risk_assessment(request_id, user_id, assessment.tier.value, assessment.dti_ratio)
    return risk_response(assessment)


@router.get("/users/{user_id}/risk-assessment/history", response_model=RiskHistoryResponse)
def get_risk_history(user_id: str, db: Session = Depends(get_db)):
    """Most recent cached assessments, newest first"""
    snapshots = RiskAssessmentRepository(db).get_recent(user_id, limit=settings.risk_history_limit)

    return RiskHistoryResponse(
        user_id=user_id,
        assessments=[
            RiskHistoryItem(
                assessment_id=str(s.id),
                dti_ratio=round(s.dti_ratio, 2),
                tier=s.tier,
                factor_level=s.factor_level,
                total_minimum_payment=s.total_minimum_payment,
                income_base=s.income_base,
                income_basis=s.income_basis,
                created_at=s.created_at.isoformat(),
            )
            for s in snapshots
        ],
    )
