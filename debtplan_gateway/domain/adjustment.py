"""Plan adjustment - turn slider inputs into a finalized repayment plan"""

import logging
import math
from dataclasses import replace
from datetime import date
from typing import Iterable, List

from debtplan_gateway.domain.amortization import MAX_SIMULATION_MONTHS, check_budget, project_repayment
from debtplan_gateway.domain.exceptions import (
    InsufficientIncomeData,
    PlanDoesNotConverge,
    ValidationError,
)
from debtplan_gateway.domain.models import (
    DebtRecord,
    IncomeProfile,
    PayoffOrder,
    PlanAlternative,
    PlanComparison,
    PlanDebtItem,
    Projection,
    RepaymentPlan,
    Strategy,
)
from debtplan_gateway.domain.risk import assess_risk, total_minimum_payment
from debtplan_gateway.domain.strategies import (
    ALL_DEBT_TYPES,
    active_debts,
    filter_debts_by_category,
    select_payoff_strategy,
)
from debtplan_gateway.utils.date_utils import payoff_date
from debtplan_gateway.utils.money import ceil_cents, round_cents

logger = logging.getLogger(__name__)

# Goal weights below this favour quick wins (Snowball), at or above it interest savings (Avalanche)
GOAL_WEIGHT_THRESHOLD = 50

MAX_REFINEMENT_ATTEMPTS = 3

# Faster alternatives put next to the current plan
REDUCED_TIME_FACTOR = 0.8
ACCELERATED_PAYMENT_FACTOR = 2.5


def strategy_for_goal_weight(goal_weight: int) -> Strategy:
    """
    Map the goal slider (0 = fastest payoff, 100 = least interest) to a strategy.

    This is a plain threshold, not a blend of two simulations:
    [0, 50) -> Snowball, [50, 100] -> Avalanche.
    """
    if not 0 <= goal_weight <= 100:
        raise ValidationError({"goal_weight": "must be between 0 and 100"})
    return Strategy.SNOWBALL if goal_weight < GOAL_WEIGHT_THRESHOLD else Strategy.AVALANCHE


def _plan_debts(debts: Iterable[DebtRecord], debt_type_id: str) -> List[DebtRecord]:
    try:
        scoped = filter_debts_by_category(debts, debt_type_id)
    except ValueError:
        raise ValidationError({"debt_type_id": f"unknown debt type '{debt_type_id}'"})
    open_debts = active_debts(scoped)
    if not open_debts:
        raise ValidationError({"debts": "no active debts with a remaining balance"})
    return open_debts


def _payoff_order(plan_debts: List[DebtRecord], allocation, projection: Projection) -> tuple:
    if isinstance(allocation, PayoffOrder):
        return allocation.order
    # Proportional has no priority order; report the order in which debts close
    return tuple(
        sorted((d.id for d in plan_debts), key=lambda i: (projection.payoff_months[i], i))
    )


def _build_plan(
    plan_debts: List[DebtRecord],
    income: IncomeProfile | None,
    strategy: Strategy,
    goal_weight: int,
    monthly_payment: float,
    debt_type_id: str,
    start_date: date | None,
    max_months: int,
    include_schedule: bool,
) -> RepaymentPlan:
    allocation = select_payoff_strategy(plan_debts, strategy)
    projection = project_repayment(
        plan_debts,
        allocation,
        monthly_payment,
        max_months=max_months,
        include_schedule=include_schedule,
    )

    order = _payoff_order(plan_debts, allocation, projection)
    position = {debt_id: index + 1 for index, debt_id in enumerate(order)}
    items = tuple(
        PlanDebtItem(
            debt_id=d.id,
            name=d.name,
            category=d.category,
            remaining_balance=d.remaining_balance,
            interest_rate=d.interest_rate,
            minimum_payment=d.minimum_payment,
            payment_order=position[d.id],
            payoff_month=projection.payoff_months[d.id],
            interest_paid=projection.interest_by_debt[d.id],
            payoff_date=(
                payoff_date(start_date, projection.payoff_months[d.id]) if start_date else None
            ),
        )
        for d in sorted(plan_debts, key=lambda d: position[d.id])
    )

    # Risk is guidance only; a plan can still be built without income data
    risk = None
    if income is not None:
        try:
            risk = assess_risk(plan_debts, income)
        except InsufficientIncomeData:
            risk = None

    return RepaymentPlan(
        strategy=strategy,
        goal_type=strategy.goal_type,
        goal_weight=goal_weight,
        monthly_payment=round_cents(monthly_payment),
        minimum_payment_total=round_cents(total_minimum_payment(plan_debts)),
        months_to_payoff=projection.months_to_payoff,
        total_interest=projection.total_interest,
        total_paid=projection.total_paid,
        payoff_order=order,
        debts=items,
        schedule=projection.schedule,
        debt_type_id=debt_type_id,
        risk=risk,
        start_date=start_date,
        payoff_date=payoff_date(start_date, projection.months_to_payoff) if start_date else None,
    )


def resolve_plan(
    debts: Iterable[DebtRecord],
    income: IncomeProfile | None,
    monthly_payment: float,
    goal_weight: int,
    strategy: Strategy | None = None,
    debt_type_id: str = ALL_DEBT_TYPES,
    start_date: date | None = None,
    max_months: int = MAX_SIMULATION_MONTHS,
    include_schedule: bool = True,
) -> RepaymentPlan:
    """
    Re-derive the plan for a requested monthly payment and goal weighting.

    Requirements:
    - Payment below the sum of minimums is rejected, never silently raised
    - Goal weighting picks the strategy unless `strategy` is given explicitly
    - Same inputs always give the same plan

    Raises:
        ValidationError: goal weight out of range, unknown debt type, no open debts
        InfeasibleBudget: monthly_payment < sum of minimum payments
        PlanDoesNotConverge: debts cannot be paid off within max_months
    """
    # Goal weight is range-checked even when a strategy is given explicitly
    resolved = strategy or strategy_for_goal_weight(goal_weight)
    if strategy is not None:
        strategy_for_goal_weight(goal_weight)

    plan_debts = _plan_debts(debts, debt_type_id)
    required = total_minimum_payment(plan_debts)
    check_budget(monthly_payment, required)

    return _build_plan(
        plan_debts,
        income,
        resolved,
        goal_weight,
        monthly_payment,
        debt_type_id,
        start_date,
        max_months,
        include_schedule,
    )


def resolve_plan_for_target_months(
    debts: Iterable[DebtRecord],
    income: IncomeProfile | None,
    target_months: int,
    goal_weight: int,
    strategy: Strategy | None = None,
    debt_type_id: str = ALL_DEBT_TYPES,
    start_date: date | None = None,
    max_months: int = MAX_SIMULATION_MONTHS,
    max_attempts: int = MAX_REFINEMENT_ATTEMPTS,
    include_schedule: bool = True,
) -> RepaymentPlan:
    """
    Work out a monthly payment that clears the debts in about `target_months`.

    First estimate ignores interest: total_balance / target_months, raised to
    at least the sum of minimums (the user asked for a time, not a budget).
    Each further attempt re-simulates and adjusts once:
    - too slow: scale the payment by months_needed / target_months
    - no convergence: add the first month's interest to the payment
    This is an approximation, not an exact root solve; at most `max_attempts`
    simulations are run and the last plan is returned with `meets_target` set.
    """
    if not 1 <= target_months <= max_months:
        raise ValidationError({"target_months": f"must be between 1 and {max_months}"})
    if max_attempts < 1:
        raise ValidationError({"max_attempts": "must be at least 1"})

    resolved = strategy or strategy_for_goal_weight(goal_weight)
    if strategy is not None:
        strategy_for_goal_weight(goal_weight)
    plan_debts = _plan_debts(debts, debt_type_id)

    total_balance = sum(d.remaining_balance for d in plan_debts)
    first_month_interest = sum(d.remaining_balance * d.interest_rate / 1200 for d in plan_debts)
    minimums = total_minimum_payment(plan_debts)
    payment = ceil_cents(max(total_balance / target_months, minimums))

    plan = None
    for attempt in range(1, max_attempts + 1):
        try:
            plan = _build_plan(
                plan_debts,
                income,
                resolved,
                goal_weight,
                payment,
                debt_type_id,
                start_date,
                max_months,
                include_schedule,
            )
        except PlanDoesNotConverge:
            if attempt == max_attempts:
                raise
            payment = ceil_cents(payment + first_month_interest)
            continue

        if plan.months_to_payoff <= target_months or attempt == max_attempts:
            break
        logger.debug(
            "Refining target-months payment",
            extra={"attempt": attempt, "payment": payment, "months": plan.months_to_payoff},
        )
        payment = ceil_cents(payment * plan.months_to_payoff / target_months)

    return _with_target(plan, target_months)


def _with_target(plan: RepaymentPlan, target_months: int) -> RepaymentPlan:
    return replace(
        plan,
        target_months=target_months,
        meets_target=plan.months_to_payoff <= target_months,
    )


def compare_plans(
    debts: Iterable[DebtRecord],
    income: IncomeProfile | None,
    monthly_payment: float,
    goal_weight: int,
    strategy: Strategy | None = None,
    debt_type_id: str = ALL_DEBT_TYPES,
    start_date: date | None = None,
    max_months: int = MAX_SIMULATION_MONTHS,
    max_attempts: int = MAX_REFINEMENT_ATTEMPTS,
) -> PlanComparison:
    """
    Put the current plan next to a minimums-only baseline and two faster plans.

    - reduced_time: the payment that clears the debts in about 80% of the
      current plan's months (see resolve_plan_for_target_months)
    - accelerated: 2.5 x the sum of minimums, never below the current payment

    Every plan is a full simulation with the same strategy and debt scope.
    Schedules are left out.

    Raises:
        Whatever resolve_plan raises for the current plan
    """
    debts = list(debts)
    options = dict(
        strategy=strategy,
        debt_type_id=debt_type_id,
        start_date=start_date,
        max_months=max_months,
        include_schedule=False,
    )

    current = resolve_plan(debts, income, monthly_payment, goal_weight, **options)
    minimums = total_minimum_payment(_plan_debts(debts, debt_type_id))

    try:
        minimum_only = resolve_plan(debts, income, minimums, goal_weight, **options)
    except PlanDoesNotConverge:
        logger.debug("Minimums-only plan does not converge", extra={"minimum_payment_total": minimums})
        minimum_only = None

    reduced = resolve_plan_for_target_months(
        debts,
        income,
        max(1, math.ceil(current.months_to_payoff * REDUCED_TIME_FACTOR)),
        goal_weight,
        max_attempts=max_attempts,
        **options,
    )
    accelerated = resolve_plan(
        debts,
        income,
        ceil_cents(max(minimums * ACCELERATED_PAYMENT_FACTOR, monthly_payment)),
        goal_weight,
        **options,
    )

    return PlanComparison(
        current=current,
        minimum_only=minimum_only,
        months_saved_vs_minimum=(
            minimum_only.months_to_payoff - current.months_to_payoff if minimum_only is not None else None
        ),
        interest_saved_vs_minimum=(
            round_cents(minimum_only.total_interest - current.total_interest) if minimum_only is not None else None
        ),
        alternatives=(
            _alternative("reduced_time", reduced, current),
            _alternative("accelerated", accelerated, current),
        ),
    )


def _alternative(kind: str, plan: RepaymentPlan, current: RepaymentPlan) -> PlanAlternative:
    return PlanAlternative(
        kind=kind,
        plan=plan,
        months_saved=current.months_to_payoff - plan.months_to_payoff,
        payment_delta=round_cents(plan.monthly_payment - current.monthly_payment),
        interest_saved=round_cents(current.total_interest - plan.total_interest),
    )
