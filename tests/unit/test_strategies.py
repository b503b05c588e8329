"""Unit tests for payoff strategy selection"""

import pytest

from debtplan_gateway.domain.models import (
    DebtCategory,
    DebtRecord,
    PayoffOrder,
    PayoffWeights,
    Strategy,
)
from debtplan_gateway.domain.strategies import (
    active_debts,
    avalanche_order,
    filter_debts_by_category,
    proportional_weights,
    select_payoff_strategy,
    snowball_order,
)


def _debt(debt_id, balance, rate, category=DebtCategory.CREDIT_CARD, is_active=True):
    return DebtRecord(
        id=debt_id,
        name=debt_id,
        category=category,
        original_amount=max(balance, 1),
        remaining_balance=balance,
        interest_rate=rate,
        minimum_payment=100,
        due_day=10,
        is_active=is_active,
    )


def test_snowball_orders_by_smallest_balance(two_debts):
    assert snowball_order(two_debts).order == ("B", "A")


def test_avalanche_orders_by_highest_rate(two_debts):
    assert avalanche_order(two_debts).order == ("A", "B")


def test_tie_breaks_are_deterministic():
    debts = [_debt("z", 1_000, 10), _debt("y", 1_000, 5), _debt("x", 1_000, 10)]

    # Snowball: equal balances -> lower rate, then id
    assert snowball_order(debts).order == ("y", "x", "z")
    # Avalanche: equal rates -> larger balance, then id
    assert avalanche_order(debts).order == ("x", "z", "y")


def test_closed_debts_are_left_out():
    debts = [_debt("open", 1_000, 10), _debt("paid", 0, 30), _debt("gone", 500, 40, is_active=False)]

    assert [d.id for d in active_debts(debts)] == ["open"]
    assert avalanche_order(debts).order == ("open",)


def test_proportional_weights_sum_to_one(two_debts):
    allocation = proportional_weights(two_debts)

    assert allocation.weights == pytest.approx({"A": 2 / 3, "B": 1 / 3})
    assert sum(allocation.weights.values()) == pytest.approx(1.0)


def test_proportional_weights_without_balance_is_empty():
    assert proportional_weights([]).weights == {}


def test_select_payoff_strategy_returns_tagged_variant(two_debts):
    assert isinstance(select_payoff_strategy(two_debts, Strategy.SNOWBALL), PayoffOrder)
    assert isinstance(select_payoff_strategy(two_debts, Strategy.AVALANCHE), PayoffOrder)
    assert isinstance(select_payoff_strategy(two_debts, Strategy.PROPORTIONAL), PayoffWeights)


def test_filter_debts_by_category(two_debts):
    assert [d.id for d in filter_debts_by_category(two_debts, "all")] == ["A", "B"]
    assert [d.id for d in filter_debts_by_category(two_debts, "personal")] == ["B"]
    assert filter_debts_by_category(two_debts, "housing") == []
    assert filter_debts_by_category(two_debts, "home") == []
    assert [d.id for d in filter_debts_by_category(two_debts, "Personal Loan")] == ["B"]

    with pytest.raises(ValueError):
        filter_debts_by_category(two_debts, "yacht")


def test_filter_accepts_category_aliases():
    debts = [
        _debt("car", 8_000, 7, category=DebtCategory.AUTO),
        _debt("house", 90_000, 4, category=DebtCategory.HOUSING),
        _debt("card", 2_000, 22),
    ]

    assert [d.id for d in filter_debts_by_category(debts, "car")] == ["car"]
    assert [d.id for d in filter_debts_by_category(debts, "vehicle")] == ["car"]
    assert [d.id for d in filter_debts_by_category(debts, "home")] == ["house"]
    assert [d.id for d in filter_debts_by_category(debts, "mortgage")] == ["house"]
