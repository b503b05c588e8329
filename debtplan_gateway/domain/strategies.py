"""Payoff strategy selection - which debt receives money beyond the minimums"""

from typing import Iterable, List

from debtplan_gateway.domain.models import (
    DebtCategory,
    DebtRecord,
    PayoffOrder,
    PayoffWeights,
    Strategy,
)

ALL_DEBT_TYPES = "all"


def active_debts(debts: Iterable[DebtRecord]) -> List[DebtRecord]:
    """Debts that still take part in a plan (active and with a balance)"""
    return [d for d in debts if d.is_open]


def filter_debts_by_category(debts: Iterable[DebtRecord], debt_type_id: str) -> List[DebtRecord]:
    """
    Scope a plan to one debt category; "all" keeps every debt.

    Category aliases ("car", "home") are accepted; unknown ids raise ValueError.
    """
    debts = list(debts)
    if debt_type_id == ALL_DEBT_TYPES:
        return debts
    category = DebtCategory.from_label(debt_type_id)
    return [d for d in debts if d.category == category]


def snowball_order(debts: Iterable[DebtRecord]) -> PayoffOrder:
    """Smallest balance first; ties go to the lower rate, then the id"""
    ordered = sorted(active_debts(debts), key=lambda d: (d.remaining_balance, d.interest_rate, d.id))
    return PayoffOrder(strategy=Strategy.SNOWBALL, order=tuple(d.id for d in ordered))


def avalanche_order(debts: Iterable[DebtRecord]) -> PayoffOrder:
    """Highest rate first; ties go to the larger balance, then the id"""
    ordered = sorted(active_debts(debts), key=lambda d: (-d.interest_rate, -d.remaining_balance, d.id))
    return PayoffOrder(strategy=Strategy.AVALANCHE, order=tuple(d.id for d in ordered))


def proportional_weights(debts: Iterable[DebtRecord]) -> PayoffWeights:
    """
    Each open debt's share of the total remaining balance.

    These are the weights at plan start; the projector recomputes them every
    month over the debts still open.
    """
    open_debts = sorted(active_debts(debts), key=lambda d: d.id)
    total = sum(d.remaining_balance for d in open_debts)
    if total <= 0:
        return PayoffWeights(weights={})
    return PayoffWeights(weights={d.id: d.remaining_balance / total for d in open_debts})


def select_payoff_strategy(
    debts: Iterable[DebtRecord], strategy: Strategy
) -> PayoffOrder | PayoffWeights:
    """Order (Snowball / Avalanche) or weight map (Proportional) for a strategy"""
    if strategy == Strategy.SNOWBALL:
        return snowball_order(debts)
    elif strategy == Strategy.AVALANCHE:
        return avalanche_order(debts)
    elif strategy == Strategy.PROPORTIONAL:
        return proportional_weights(debts)
    raise ValueError(f"Unknown payoff strategy: {strategy}")
