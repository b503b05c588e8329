"""Amortization projection - month-by-month simulation of a repayment plan"""

from typing import Dict, Iterable, List

from debtplan_gateway.domain.exceptions import InfeasibleBudget, PlanDoesNotConverge
from debtplan_gateway.domain.models import (
    DebtMonth,
    DebtRecord,
    MonthSchedule,
    PayoffOrder,
    PayoffWeights,
    Projection,
)
from debtplan_gateway.domain.risk import total_minimum_payment
from debtplan_gateway.domain.strategies import active_debts
from debtplan_gateway.utils.money import round_cents

MAX_SIMULATION_MONTHS = 600

# A balance at or below half a cent counts as paid off and is clamped to zero
BALANCE_EPSILON = 0.005

# Float noise allowed when comparing a budget to the sum of minimums
BUDGET_TOLERANCE = 1e-6


def check_budget(monthly_budget: float, required: float) -> None:
    """Raise InfeasibleBudget when the budget is below the minimums, even by a fraction of a cent"""
    if required - monthly_budget > BUDGET_TOLERANCE:
        raise InfeasibleBudget(requested=monthly_budget, required=required)


def project_repayment(
    debts: Iterable[DebtRecord],
    allocation: PayoffOrder | PayoffWeights,
    monthly_budget: float,
    max_months: int = MAX_SIMULATION_MONTHS,
    include_schedule: bool = True,
) -> Projection:
    """
    Simulate paying down debts with a fixed monthly budget.

    Each month:
    1. Accrue balance * (annual_rate / 100 / 12) on every open debt
    2. Pay each debt's minimum (never more than it owes)
    3. Leftover = budget - minimums actually paid
    4. Spend leftover by strategy:
       - PayoffOrder: all of it to the first open debt, overflowing down the order
       - PayoffWeights: split by each open debt's share of current balances,
         recomputed every month over the debts still open
    5. A debt closes the month its balance reaches zero (within BALANCE_EPSILON)

    Minimums freed by closed debts stay in the budget, so they roll into the
    leftover automatically.

    Raises:
        InfeasibleBudget: budget is below the sum of minimum payments
        PlanDoesNotConverge: debts still open after max_months

    Example:
        Debt A 10,000 @ 20% (min 500), Debt B 5,000 @ 10% (min 300), budget 1,200
        Avalanche sends the extra 400 to A; Snowball sends it to B.
    """
    open_debts = sorted(active_debts(debts), key=lambda d: d.id)
    required = total_minimum_payment(open_debts)
    check_budget(monthly_budget, required)

    if not open_debts:
        return Projection(
            months_to_payoff=0,
            total_interest=0.0,
            total_paid=0.0,
            payoff_months={},
            interest_by_debt={},
        )

    ids = [d.id for d in open_debts]
    balances: Dict[str, float] = {d.id: d.remaining_balance for d in open_debts}
    minimums: Dict[str, float] = {d.id: d.minimum_payment for d in open_debts}
    monthly_rates: Dict[str, float] = {d.id: d.interest_rate / 100 / 12 for d in open_debts}

    payoff_months: Dict[str, int] = {}
    interest_by_debt: Dict[str, float] = {i: 0.0 for i in ids}
    total_interest = 0.0
    total_paid = 0.0
    schedule: List[MonthSchedule] = []

    def close_if_paid(debt_id: str, month: int) -> None:
        if balances[debt_id] <= BALANCE_EPSILON:
            balances[debt_id] = 0.0
            payoff_months[debt_id] = month

    for month in range(1, max_months + 1):
        month_ids = [i for i in ids if i not in payoff_months]
        interest: Dict[str, float] = {}
        paid: Dict[str, float] = {i: 0.0 for i in month_ids}

        # 1. Interest accrual
        for debt_id in month_ids:
            accrued = balances[debt_id] * monthly_rates[debt_id]
            balances[debt_id] += accrued
            interest[debt_id] = accrued
            interest_by_debt[debt_id] += accrued
            total_interest += accrued

        # 2. Minimum payments
        minimum_paid = 0.0
        for debt_id in month_ids:
            payment = min(minimums[debt_id], balances[debt_id])
            balances[debt_id] -= payment
            paid[debt_id] += payment
            minimum_paid += payment
            close_if_paid(debt_id, month)

        # 3-4. Leftover budget
        leftover = max(monthly_budget - minimum_paid, 0.0)
        if isinstance(allocation, PayoffWeights):
            _allocate_by_weight(allocation, balances, paid, payoff_months, leftover)
        else:
            _allocate_in_order(allocation, balances, paid, payoff_months, leftover)
        for debt_id in month_ids:
            close_if_paid(debt_id, month)

        month_paid = sum(paid.values())
        total_paid += month_paid

        if include_schedule:
            schedule.append(
                MonthSchedule(
                    month=month,
                    payments=tuple(
                        DebtMonth(
                            debt_id=debt_id,
                            interest=round_cents(interest[debt_id]),
                            principal=round_cents(paid[debt_id] - interest[debt_id]),
                            payment=round_cents(paid[debt_id]),
                            remaining_balance=round_cents(balances[debt_id]),
                        )
                        for debt_id in month_ids
                    ),
                    total_paid=round_cents(month_paid),
                    total_interest=round_cents(sum(interest.values())),
                    remaining_balance=round_cents(sum(balances.values())),
                )
            )

        if len(payoff_months) == len(ids):
            break
    else:
        raise PlanDoesNotConverge(max_months)

    return Projection(
        months_to_payoff=max(payoff_months.values()),
        total_interest=round_cents(total_interest),
        total_paid=round_cents(total_paid),
        payoff_months=dict(payoff_months),
        interest_by_debt={i: round_cents(v) for i, v in interest_by_debt.items()},
        schedule=tuple(schedule),
    )


def _allocate_in_order(
    allocation: PayoffOrder,
    balances: Dict[str, float],
    paid: Dict[str, float],
    closed: Dict[str, int],
    leftover: float,
) -> float:
    """Pour leftover into debts in strategy order; returns what could not be spent"""
    for debt_id in allocation.order:
        if leftover <= 0:
            break
        if debt_id not in balances or debt_id in closed or balances[debt_id] <= 0:
            continue
        payment = min(leftover, balances[debt_id])
        balances[debt_id] -= payment
        paid[debt_id] += payment
        leftover -= payment
    return leftover


def _allocate_by_weight(
    allocation: PayoffWeights,
    balances: Dict[str, float],
    paid: Dict[str, float],
    closed: Dict[str, int],
    leftover: float,
) -> float:
    """
    Split leftover by current balance share of the still-open debts.

    A share larger than what its debt owes is split again over the debts
    still open, so the budget is only left unspent once every debt is paid.
    """
    while leftover > BALANCE_EPSILON:
        open_ids = [
            debt_id
            for debt_id in sorted(allocation.weights)
            if debt_id in balances and debt_id not in closed and balances[debt_id] > 0
        ]
        total = sum(balances[debt_id] for debt_id in open_ids)
        if total <= 0:
            break

        # Weights are fixed from the balances before this round of extra is applied
        weights = {debt_id: balances[debt_id] / total for debt_id in open_ids}
        spent = 0.0
        for debt_id in open_ids:
            payment = min(leftover * weights[debt_id], balances[debt_id])
            balances[debt_id] -= payment
            paid[debt_id] += payment
            spent += payment
        leftover -= spent
    return leftover
