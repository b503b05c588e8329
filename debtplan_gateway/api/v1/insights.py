"""POST /v1/users/{user_id}/insights - AI coaching tips for a user's situation"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from debtplan_gateway.api.dependencies import get_insight_client, get_request_id
from debtplan_gateway.api.v1.errors import domain_http_error
from debtplan_gateway.api.v1.schemas import InsightResponse
from debtplan_gateway.domain.exceptions import InsightAPIError, InsufficientIncomeData
from debtplan_gateway.domain.risk import assess_risk
from debtplan_gateway.domain.summary import build_insight_summary
from debtplan_gateway.infrastructure.clients.insight import InsightClient
from debtplan_gateway.infrastructure.database.repositories import (
    DebtRepository,
    IncomeRepository,
    PlanRepository,
    to_debt_record,
    to_income_profile,
    to_repayment_plan,
)
from debtplan_gateway.infrastructure.database.session import get_db

router = APIRouter()


@router.post("/users/{user_id}/insights", response_model=InsightResponse)
async def request_insights(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    insight_client: InsightClient = Depends(get_insight_client),
):
    """
    Ask the AI service for coaching tips.

    Flow:
    1. Load active debts, income and the active plan
    2. Recompute the risk assessment (skipped when income is missing)
    3. Send the summary; the service receives full context on every call
    """
    request_id = get_request_id(request)

    debts = [to_debt_record(row) for row in DebtRepository(db).get_debts_by_user(user_id)]

    risk = None
    income_row = IncomeRepository(db).get(user_id)
    if income_row is not None:
        try:
            risk = assess_risk(debts, to_income_profile(income_row))
        except InsufficientIncomeData:
            risk = None

    active_plans = PlanRepository(db).get_plans_by_user(user_id, active=True, limit=1)
    plan = to_repayment_plan(active_plans[0]) if active_plans else None

    summary = build_insight_summary(risk, debts, plan)

    try:
        tips = await insight_client.request_tips(user_id, summary)
    except InsightAPIError as e:
        logging.error(f"Insight API error: {e}", extra={"request_id": request_id})
        raise domain_http_error(e)

    return InsightResponse(user_id=user_id, tips=tips, summary=summary)
