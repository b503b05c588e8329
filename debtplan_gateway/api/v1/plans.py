"""Repayment plan endpoints - preview, commit and fetch plans"""

import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from debtplan_gateway.api.dependencies import get_request_id
from debtplan_gateway.api.v1.debts import normalize_inputs
from debtplan_gateway.api.v1.errors import (
    domain_http_error,
    error_code,
    internal_error,
    not_found,
    parse_uuid,
)
from debtplan_gateway.api.v1.risk import risk_response
from debtplan_gateway.api.v1.schemas import (
    DebtMonthSchema,
    MonthScheduleSchema,
    PlanDebtSchema,
    PlanHistoryItem,
    PlanAlternativeSchema,
    PlanCompareRequest,
    PlanComparisonResponse,
    PlanListResponse,
    PlanPreviewRequest,
    PlanRequest,
    PlanResponse,
)
from debtplan_gateway.config import settings
from debtplan_gateway.domain.adjustment import compare_plans, resolve_plan, resolve_plan_for_target_months
from debtplan_gateway.domain.exceptions import DomainException, ValidationError
from debtplan_gateway.domain.models import DebtRecord, IncomeProfile, RepaymentPlan
from debtplan_gateway.domain.normalizer import normalize_income, parse_amount
from debtplan_gateway.infrastructure.database.models import DebtPlan
from debtplan_gateway.infrastructure.database.repositories import (
    DebtRepository,
    IncomeRepository,
    PlanRepository,
    to_debt_record,
    to_income_profile,
    to_repayment_plan,
)
from debtplan_gateway.infrastructure.database.session import get_db
from debtplan_gateway.infrastructure.observability.logging import log_plan, log_plan_rejected
from debtplan_gateway.infrastructure.observability.metrics import record_plan, record_plan_rejection

router = APIRouter()


def resolve_from_request(
    request_body: PlanRequest,
    debts: List[DebtRecord],
    income: Optional[IncomeProfile],
) -> RepaymentPlan:
    """Dispatch to the budget or the target-months resolver"""
    if request_body.target_months is not None:
        return resolve_plan_for_target_months(
            debts,
            income,
            target_months=request_body.target_months,
            goal_weight=request_body.goal_weight,
            strategy=request_body.strategy,
            debt_type_id=request_body.debt_type_id,
            start_date=request_body.start_date,
            max_months=settings.max_simulation_months,
            max_attempts=settings.plan_refinement_attempts,
            include_schedule=request_body.include_schedule,
        )

    monthly_payment = parse_amount(request_body.monthly_payment, "monthly_payment")
    if monthly_payment <= 0:
        raise ValidationError({"monthly_payment": "must be greater than zero"})

    return resolve_plan(
        debts,
        income,
        monthly_payment=monthly_payment,
        goal_weight=request_body.goal_weight,
        strategy=request_body.strategy,
        debt_type_id=request_body.debt_type_id,
        start_date=request_body.start_date,
        max_months=settings.max_simulation_months,
        include_schedule=request_body.include_schedule,
    )


def plan_response(plan: RepaymentPlan, db_plan: Optional[DebtPlan] = None) -> PlanResponse:
    """Serialize a plan; persisted metadata is added when the plan was stored"""
    return PlanResponse(
        plan_id=str(db_plan.id) if db_plan is not None else None,
        user_id=db_plan.user_id if db_plan is not None else None,
        is_active=db_plan.is_active if db_plan is not None else None,
        strategy=plan.strategy.value,
        goal_type=plan.goal_type.value,
        goal_weight=plan.goal_weight,
        monthly_payment=plan.monthly_payment,
        minimum_payment_total=plan.minimum_payment_total,
        months_to_payoff=plan.months_to_payoff,
        total_interest=plan.total_interest,
        total_paid=plan.total_paid,
        payoff_order=list(plan.payoff_order),
        debt_type_id=plan.debt_type_id,
        target_months=plan.target_months,
        meets_target=plan.meets_target,
        payoff_date=plan.payoff_date,
        debts=[
            PlanDebtSchema(
                debt_id=item.debt_id,
                name=item.name,
                category=item.category.value,
                remaining_balance=item.remaining_balance,
                interest_rate=item.interest_rate,
                minimum_payment=item.minimum_payment,
                payment_order=item.payment_order,
                payoff_month=item.payoff_month,
                interest_paid=item.interest_paid,
                payoff_date=item.payoff_date,
            )
            for item in plan.debts
        ],
        schedule=[
            MonthScheduleSchema(
                month=month.month,
                payments=[
                    DebtMonthSchema(
                        debt_id=p.debt_id,
                        interest=p.interest,
                        principal=p.principal,
                        payment=p.payment,
                        remaining_balance=p.remaining_balance,
                    )
                    for p in month.payments
                ],
                total_paid=month.total_paid,
                total_interest=month.total_interest,
                remaining_balance=month.remaining_balance,
            )
            for month in plan.schedule
        ],
        risk=risk_response(plan.risk) if plan.risk is not None else None,
        created_at=db_plan.created_at.isoformat() if db_plan is not None else None,
    )


@router.post("/plans/preview", response_model=PlanResponse)
def preview_plan(request_body: PlanPreviewRequest, request: Request):
    """
    Stateless plan from inline debts (slider preview, guest use).

    Nothing is stored. Income is optional; without it the plan carries no
    risk assessment.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        debts = normalize_inputs(request_body.debts)
        income = normalize_income(request_body.income.model_dump()) if request_body.income else None
        plan = resolve_from_request(request_body, debts, income)

    except DomainException as e:
        code = error_code(e)
        record_plan_rejection(code)
        log_plan_rejected(request_id, None, code, str(e))
        raise domain_http_error(e)

    duration_ms = (time.time() - start_time) * 1000
    record_plan(plan.strategy.value, plan.months_to_payoff, committed=False)
    log_plan(
        request_id,
        None,
        plan.strategy.value,
        plan.monthly_payment,
        plan.months_to_payoff,
        plan.total_interest,
        duration_ms,
    )
    return plan_response(plan)


@router.post("/plans/compare", response_model=PlanComparisonResponse)
def compare_plan_options(request_body: PlanCompareRequest, request: Request):
    """
    Current plan next to a minimums-only baseline and two faster alternatives.

    Stateless like the preview. Deltas of the alternatives are against the
    current plan; the baseline shows what paying only the minimums costs.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        debts = normalize_inputs(request_body.debts)
        income = normalize_income(request_body.income.model_dump()) if request_body.income else None
        monthly_payment = parse_amount(request_body.monthly_payment, "monthly_payment")
        if monthly_payment <= 0:
            raise ValidationError({"monthly_payment": "must be greater than zero"})

        comparison = compare_plans(
            debts,
            income,
            monthly_payment=monthly_payment,
            goal_weight=request_body.goal_weight,
            strategy=request_body.strategy,
            debt_type_id=request_body.debt_type_id,
            start_date=request_body.start_date,
            max_months=settings.max_simulation_months,
            max_attempts=settings.plan_refinement_attempts,
        )

    except DomainException as e:
        code = error_code(e)
        record_plan_rejection(code)
        log_plan_rejected(request_id, None, code, str(e))
        raise domain_http_error(e)

    current = comparison.current
    duration_ms = (time.time() - start_time) * 1000
    log_plan(
        request_id,
        None,
        current.strategy.value,
        current.monthly_payment,
        current.months_to_payoff,
        current.total_interest,
        duration_ms,
    )

    return PlanComparisonResponse(
        current=plan_response(current),
        minimum_only=plan_response(comparison.minimum_only) if comparison.minimum_only is not None else None,
        months_saved_vs_minimum=comparison.months_saved_vs_minimum,
        interest_saved_vs_minimum=comparison.interest_saved_vs_minimum,
        alternatives=[
            PlanAlternativeSchema(
                kind=alt.kind,
                plan=plan_response(alt.plan),
                months_saved=alt.months_saved,
                payment_delta=alt.payment_delta,
                interest_saved=alt.interest_saved,
            )
            for alt in comparison.alternatives
        ],
    )


@router.post("/users/{user_id}/plans", response_model=PlanResponse, status_code=201)
def commit_plan(
    user_id: str,
    request_body: PlanRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Resolve a plan from the user's stored debts and make it the active plan.

    Flow:
    1. Load active debts and the income snapshot (income is optional)
    2. Resolve the plan for the requested budget or target months
    3. Deactivate the previous active plan and store the new one
    4. Commit both in one transaction
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        debts = [to_debt_record(row) for row in DebtRepository(db).get_debts_by_user(user_id)]
        income_row = IncomeRepository(db).get(user_id)
        income = to_income_profile(income_row) if income_row else None

        plan = resolve_from_request(request_body, debts, income)

        db_plan = PlanRepository(db).commit_plan(user_id, plan)
        db.commit()
        db.refresh(db_plan)

    except DomainException as e:
        db.rollback()
        code = error_code(e)
        record_plan_rejection(code)
        log_plan_rejected(request_id, user_id, code, str(e))
        raise domain_http_error(e)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise internal_error()

    duration_ms = (time.time() - start_time) * 1000
    record_plan(plan.strategy.value, plan.months_to_payoff, committed=True)
    log_plan(
        request_id,
        user_id,
        plan.strategy.value,
        plan.monthly_payment,
        plan.months_to_payoff,
        plan.total_interest,
        duration_ms,
    )
    return plan_response(plan, db_plan)


@router.get("/users/{user_id}/plans", response_model=PlanListResponse)
def list_plans(
    user_id: str,
    active: Optional[bool] = Query(None, description="Filter by active flag"),
    db: Session = Depends(get_db),
):
    """Plans for a user, newest first"""
    plans = PlanRepository(db).get_plans_by_user(user_id, active=active)

    return PlanListResponse(
        user_id=user_id,
        plans=[
            PlanHistoryItem(
                plan_id=str(p.id),
                strategy=p.payment_strategy,
                goal_type=p.goal_type,
                monthly_payment=p.monthly_payment,
                months_to_payoff=p.time_in_months,
                total_interest=p.total_interest,
                is_active=p.is_active,
                created_at=p.created_at.isoformat(),
            )
            for p in plans
        ],
    )


@router.get("/plans/{plan_id}", response_model=PlanResponse)
def get_plan(plan_id: str, db: Session = Depends(get_db)):
    """
    Retrieve a committed plan with its debt items.

    Month-by-month schedules are not stored; preview the plan again to get one.
    """
    plan_uuid = parse_uuid(plan_id, "plan")

    db_plan = PlanRepository(db).get_plan_by_id(plan_uuid)
    if not db_plan:
        raise not_found("plan")

    return plan_response(to_repayment_plan(db_plan), db_plan)
