"""Unit tests for plan adjustment (goal slider and budget/target inputs)"""

import math
from datetime import date

import pytest

from debtplan_gateway.domain.adjustment import (
    compare_plans,
    resolve_plan,
    resolve_plan_for_target_months,
    strategy_for_goal_weight,
)
from debtplan_gateway.domain.exceptions import InfeasibleBudget, ValidationError
from debtplan_gateway.domain.models import (
    DebtCategory,
    DebtRecord,
    GoalType,
    IncomeProfile,
    RiskTier,
    Strategy,
)
from debtplan_gateway.utils.date_utils import add_months


def _debt(debt_id, balance, rate, minimum, is_active=True):
    return DebtRecord(
        id=debt_id,
        name=debt_id,
        category=DebtCategory.CREDIT_CARD,
        original_amount=max(balance, 1),
        remaining_balance=balance,
        interest_rate=rate,
        minimum_payment=minimum,
        due_day=20,
        is_active=is_active,
    )


@pytest.mark.parametrize(
    "goal_weight,expected",
    [
        (0, Strategy.SNOWBALL),
        (49, Strategy.SNOWBALL),
        (50, Strategy.AVALANCHE),
        (100, Strategy.AVALANCHE),
    ],
)
def test_goal_weight_threshold(goal_weight, expected):
    assert strategy_for_goal_weight(goal_weight) == expected


@pytest.mark.parametrize("goal_weight", [-1, 101])
def test_goal_weight_out_of_range(goal_weight):
    with pytest.raises(ValidationError) as exc_info:
        strategy_for_goal_weight(goal_weight)

    assert "goal_weight" in exc_info.value.errors


def test_resolve_plan_is_idempotent(two_debts, income):
    first = resolve_plan(two_debts, income, 1_200, 80, start_date=date(2025, 1, 1))
    second = resolve_plan(two_debts, income, 1_200, 80, start_date=date(2025, 1, 1))

    assert first == second


def test_resolve_plan_follows_goal_weight(two_debts, income):
    quick_wins = resolve_plan(two_debts, income, 1_200, 10)
    save_interest = resolve_plan(two_debts, income, 1_200, 90)

    assert quick_wins.strategy == Strategy.SNOWBALL
    assert quick_wins.goal_type == GoalType.FAST_RESULTS
    assert quick_wins.payoff_order == ("B", "A")

    assert save_interest.strategy == Strategy.AVALANCHE
    assert save_interest.goal_type == GoalType.SAVE_INTEREST
    assert save_interest.payoff_order == ("A", "B")
    assert save_interest.total_interest <= quick_wins.total_interest


def test_explicit_strategy_overrides_goal_weight(two_debts, income):
    plan = resolve_plan(two_debts, income, 1_200, 10, strategy=Strategy.PROPORTIONAL)

    assert plan.strategy == Strategy.PROPORTIONAL
    assert plan.goal_type == GoalType.BALANCED
    assert set(plan.payoff_order) == {"A", "B"}
    assert [item.payment_order for item in plan.debts] == [1, 2]


def test_plan_items_follow_payoff_order(two_debts, income):
    plan = resolve_plan(two_debts, income, 1_200, 0)

    assert [item.debt_id for item in plan.debts] == ["B", "A"]
    assert plan.debts[0].payoff_month < plan.debts[1].payoff_month
    assert plan.months_to_payoff == plan.debts[1].payoff_month
    assert plan.minimum_payment_total == 800
    assert sum(item.interest_paid for item in plan.debts) == pytest.approx(plan.total_interest, abs=0.02)


def test_payment_below_minimums_is_rejected_not_raised(two_debts, income):
    with pytest.raises(InfeasibleBudget) as exc_info:
        resolve_plan(two_debts, income, 700, 50)

    assert exc_info.value.requested == 700
    assert exc_info.value.required == 800

    with pytest.raises(InfeasibleBudget):
        resolve_plan(two_debts, income, 799.996, 50)


def test_risk_is_attached_when_income_is_known(two_debts, income):
    plan = resolve_plan(two_debts, income, 1_200, 50)

    # 800 of minimums over 50,000 gross
    assert plan.risk is not None
    assert plan.risk.dti_ratio == pytest.approx(1.6)
    assert plan.risk.tier == RiskTier.SAFE


def test_risk_is_omitted_without_usable_income(two_debts):
    assert resolve_plan(two_debts, None, 1_200, 50).risk is None
    assert resolve_plan(two_debts, IncomeProfile(net_monthly_income=0), 1_200, 50).risk is None


def test_no_open_debts_is_a_validation_error():
    debts = [_debt("paid", 0, 10, 100), _debt("gone", 1_000, 10, 100, is_active=False)]

    with pytest.raises(ValidationError) as exc_info:
        resolve_plan(debts, None, 500, 50)

    assert "debts" in exc_info.value.errors


def test_debt_type_scopes_the_plan(two_debts):
    plan = resolve_plan(two_debts, None, 600, 50, debt_type_id="personal")

    assert plan.payoff_order == ("B",)
    assert plan.debt_type_id == "personal"
    assert plan.minimum_payment_total == 300

    with pytest.raises(ValidationError) as exc_info:
        resolve_plan(two_debts, None, 600, 50, debt_type_id="yacht")
    assert "debt_type_id" in exc_info.value.errors


def test_debt_type_accepts_category_aliases():
    debts = [
        _debt("card", 2_000, 22.0, 100),
        DebtRecord(
            id="car",
            name="Car loan",
            category=DebtCategory.AUTO,
            original_amount=8_000,
            remaining_balance=8_000,
            interest_rate=7.0,
            minimum_payment=300,
            due_day=1,
        ),
    ]

    plan = resolve_plan(debts, None, 500, 50, debt_type_id="car")
    assert plan.payoff_order == ("car",)
    assert plan.minimum_payment_total == 300

    with pytest.raises(ValidationError) as exc_info:
        resolve_plan(debts, None, 500, 50, debt_type_id="home")
    # Known type with nothing to pay off
    assert "debts" in exc_info.value.errors


def test_payoff_dates_need_a_start_date(two_debts):
    undated = resolve_plan(two_debts, None, 1_200, 50)
    assert undated.payoff_date is None
    assert all(item.payoff_date is None for item in undated.debts)

    dated = resolve_plan(two_debts, None, 1_200, 50, start_date=date(2025, 1, 31))
    assert dated.start_date == date(2025, 1, 31)
    assert dated.payoff_date == add_months(date(2025, 1, 31), dated.months_to_payoff - 1)
    for item in dated.debts:
        assert item.payoff_date == add_months(date(2025, 1, 31), item.payoff_month - 1)


def test_target_months_exact_without_interest():
    debts = [_debt("a", 6_000, 0.0, 100), _debt("b", 6_000, 0.0, 100)]

    plan = resolve_plan_for_target_months(debts, None, 12, 50)

    assert plan.monthly_payment == 1_000
    assert plan.months_to_payoff == 12
    assert plan.target_months == 12
    assert plan.meets_target is True


def test_target_months_estimate_never_below_minimums():
    debts = [_debt("a", 1_000, 0.0, 500)]

    plan = resolve_plan_for_target_months(debts, None, 10, 50)

    assert plan.monthly_payment == 500
    assert plan.months_to_payoff == 2
    assert plan.meets_target is True


def test_target_months_refines_for_interest(two_debts):
    plan = resolve_plan_for_target_months(two_debts, None, 12, 80)

    # Interest-free estimate would be 1,250; interest pushes the payment up
    assert plan.monthly_payment > 1_250
    assert plan.target_months == 12
    assert plan.meets_target is True
    assert plan.months_to_payoff <= 12


def test_target_months_recovers_from_non_convergence():
    # 1,000 minimum never beats 2,000 of monthly interest; adding the
    # first month's interest makes the plan converge
    debts = [_debt("heavy", 100_000, 24.0, 1_000)]

    plan = resolve_plan_for_target_months(debts, None, 600, 50)

    assert plan.monthly_payment == 3_000
    assert plan.meets_target is True


def test_target_months_out_of_range(two_debts):
    with pytest.raises(ValidationError):
        resolve_plan_for_target_months(two_debts, None, 0, 50)
    with pytest.raises(ValidationError):
        resolve_plan_for_target_months(two_debts, None, 601, 50)


def test_compare_plans(two_debts, income):
    comparison = compare_plans(two_debts, income, 1_200, 80)
    current = comparison.current

    assert current.monthly_payment == 1_200
    assert current.strategy == Strategy.AVALANCHE
    assert current.schedule == ()

    # Paying only the 800 of minimums takes longer and costs more interest
    baseline = comparison.minimum_only
    assert baseline.monthly_payment == 800
    assert comparison.months_saved_vs_minimum == baseline.months_to_payoff - current.months_to_payoff
    assert comparison.months_saved_vs_minimum > 0
    assert comparison.interest_saved_vs_minimum > 0

    reduced, accelerated = comparison.alternatives
    assert reduced.kind == "reduced_time"
    assert reduced.plan.target_months == math.ceil(current.months_to_payoff * 0.8)
    assert reduced.months_saved > 0
    assert reduced.payment_delta > 0

    assert accelerated.kind == "accelerated"
    assert accelerated.plan.monthly_payment == 2_000
    assert accelerated.payment_delta == 800
    assert accelerated.months_saved == current.months_to_payoff - accelerated.plan.months_to_payoff
    assert accelerated.months_saved > 0
    assert accelerated.interest_saved == pytest.approx(current.total_interest - accelerated.plan.total_interest, abs=0.01)
    assert accelerated.interest_saved > 0


def test_compare_plans_without_a_converging_baseline():
    # The 1,000 minimum never covers 2,000 of monthly interest
    debts = [_debt("heavy", 100_000, 24.0, 1_000)]

    comparison = compare_plans(debts, None, 3_000, 50)

    assert comparison.minimum_only is None
    assert comparison.months_saved_vs_minimum is None
    assert comparison.interest_saved_vs_minimum is None

    # 2.5 x the minimum is below the current payment, so it stays at 3,000
    accelerated = comparison.alternatives[1]
    assert accelerated.plan.monthly_payment == 3_000
    assert accelerated.months_saved == 0
    assert accelerated.payment_delta == 0


def test_compare_plans_rejects_infeasible_budget(two_debts):
    with pytest.raises(InfeasibleBudget):
        compare_plans(two_debts, None, 700, 50)
