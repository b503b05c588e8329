"""Unit tests for the month-by-month repayment projection"""

import pytest

from debtplan_gateway.domain.amortization import project_repayment
from debtplan_gateway.domain.exceptions import InfeasibleBudget, PlanDoesNotConverge
from debtplan_gateway.domain.models import DebtCategory, DebtRecord, Strategy
from debtplan_gateway.domain.strategies import select_payoff_strategy


def _debt(debt_id, balance, rate, minimum):
    return DebtRecord(
        id=debt_id,
        name=debt_id,
        category=DebtCategory.PERSONAL,
        original_amount=balance,
        remaining_balance=balance,
        interest_rate=rate,
        minimum_payment=minimum,
        due_day=5,
    )


def _project(debts, strategy, budget, **kwargs):
    return project_repayment(debts, select_payoff_strategy(debts, strategy), budget, **kwargs)


@pytest.mark.parametrize("budget", [300, 500, 1_000])
def test_single_debt_is_identical_across_strategies(budget):
    debts = [_debt("only", 5_000, 10.0, 300)]

    results = [_project(debts, strategy, budget) for strategy in Strategy]

    assert len({r.months_to_payoff for r in results}) == 1
    assert len({r.total_interest for r in results}) == 1


def test_two_debt_scenario(two_debts):
    """A 10,000 @ 20% (min 500), B 5,000 @ 10% (min 300), budget 1,200"""
    snowball = _project(two_debts, Strategy.SNOWBALL, 1_200)
    avalanche = _project(two_debts, Strategy.AVALANCHE, 1_200)

    # Snowball clears the small balance first, Avalanche the expensive one
    assert snowball.payoff_months["B"] < snowball.payoff_months["A"]
    assert avalanche.payoff_months["A"] < avalanche.payoff_months["B"]

    assert snowball.months_to_payoff < 600
    assert avalanche.months_to_payoff < 600
    assert avalanche.total_interest <= snowball.total_interest


@pytest.mark.parametrize("strategy", list(Strategy))
def test_raising_budget_never_slows_payoff(two_debts, strategy):
    results = [_project(two_debts, strategy, budget) for budget in (800, 1_000, 1_200, 2_000, 5_000)]

    for lower, higher in zip(results, results[1:]):
        assert higher.months_to_payoff <= lower.months_to_payoff
        assert higher.total_interest <= lower.total_interest


def test_budget_below_minimums_is_infeasible(two_debts):
    with pytest.raises(InfeasibleBudget) as exc_info:
        _project(two_debts, Strategy.AVALANCHE, 799.99)

    assert exc_info.value.required == 800


def test_budget_a_fraction_of_a_cent_short_is_infeasible(two_debts):
    # Rounds to 800.00 but would still have to pay 800 every month
    with pytest.raises(InfeasibleBudget):
        _project(two_debts, Strategy.SNOWBALL, 799.996)


def test_budget_equal_to_minimums_is_accepted(two_debts):
    projection = _project(two_debts, Strategy.SNOWBALL, 800)

    assert projection.months_to_payoff > 0


def test_interest_outpacing_payment_does_not_converge():
    # 2% a month on 100,000 is 2,000 of interest against a 1,000 payment
    debts = [_debt("heavy", 100_000, 24.0, 1_000)]

    with pytest.raises(PlanDoesNotConverge) as exc_info:
        _project(debts, Strategy.AVALANCHE, 1_000)

    assert exc_info.value.max_months == 600


def test_max_months_is_respected():
    debts = [_debt("slow", 10_000, 0.0, 100)]

    with pytest.raises(PlanDoesNotConverge):
        _project(debts, Strategy.SNOWBALL, 100, max_months=50)

    assert _project(debts, Strategy.SNOWBALL, 100).months_to_payoff == 100


def test_empty_debt_set_is_zero_projection():
    projection = project_repayment([], select_payoff_strategy([], Strategy.SNOWBALL), 500)

    assert projection.months_to_payoff == 0
    assert projection.total_interest == 0.0
    assert projection.schedule == ()


def test_zero_interest_is_plain_division():
    debts = [_debt("a", 6_000, 0.0, 100), _debt("b", 6_000, 0.0, 100)]

    projection = _project(debts, Strategy.PROPORTIONAL, 1_000)

    assert projection.months_to_payoff == 12
    assert projection.total_interest == 0.0
    assert projection.total_paid == 12_000


def test_total_paid_is_principal_plus_interest(two_debts):
    for strategy in Strategy:
        projection = _project(two_debts, strategy, 1_200)
        assert projection.total_paid == pytest.approx(15_000 + projection.total_interest, abs=0.02)


def test_freed_minimums_roll_into_the_budget(two_debts):
    projection = _project(two_debts, Strategy.SNOWBALL, 1_200)
    b_closed = projection.payoff_months["B"]

    # Every month before the final one spends the whole budget
    for month in projection.schedule[:-1]:
        assert month.total_paid == pytest.approx(1_200, abs=0.01)

    after_b = projection.schedule[b_closed]
    assert [p.debt_id for p in after_b.payments] == ["A"]


def test_proportional_spreads_extra_over_open_debts(two_debts):
    projection = _project(two_debts, Strategy.PROPORTIONAL, 1_200)
    first = {p.debt_id: p for p in projection.schedule[0].payments}

    # Both debts get more than their minimum in month one
    assert first["A"].payment > 500
    assert first["B"].payment > 300
    assert projection.months_to_payoff < 600


def test_schedule_rows_are_rounded_and_optional(two_debts):
    projection = _project(two_debts, Strategy.AVALANCHE, 1_200)
    month_one = projection.schedule[0]

    assert month_one.month == 1
    assert month_one.total_interest == pytest.approx(10_000 * 0.20 / 12 + 5_000 * 0.10 / 12, abs=0.01)
    assert projection.schedule[-1].remaining_balance == 0.0

    no_schedule = _project(two_debts, Strategy.AVALANCHE, 1_200, include_schedule=False)
    assert no_schedule.schedule == ()
    assert no_schedule.months_to_payoff == projection.months_to_payoff


def test_proportional_reweights_after_a_debt_closes():
    """The 1,000 loan is cleared by its own minimum in month 3; the rest is split over b and c"""
    debts = [
        _debt("a", 1_000, 0.0, 400),
        _debt("b", 10_000, 12.0, 200),
        _debt("c", 8_000, 18.0, 200),
    ]

    projection = _project(debts, Strategy.PROPORTIONAL, 2_000)

    assert projection.payoff_months["a"] == 3
    assert projection.payoff_months["b"] == projection.months_to_payoff
    assert projection.payoff_months["c"] == projection.months_to_payoff

    for month in projection.schedule[:-1]:
        assert month.total_paid == pytest.approx(2_000, abs=0.01)

    after_a = projection.schedule[3]
    payments = {p.debt_id: p.payment for p in after_a.payments}
    assert list(payments) == ["b", "c"]
    # a's freed minimum is shared out over the two open debts
    assert payments["b"] + payments["c"] == pytest.approx(2_000, abs=0.01)
    assert payments["b"] > 200
    assert payments["c"] > 200
