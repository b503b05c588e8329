"""Applying recorded payments to a debt"""

from dataclasses import replace

from debtplan_gateway.domain.amortization import BALANCE_EPSILON
from debtplan_gateway.domain.exceptions import ValidationError
from debtplan_gateway.domain.models import DebtRecord


def apply_payment(debt: DebtRecord, amount: float) -> DebtRecord:
    """
    Return the debt after a payment is applied.

    The balance only ever goes down here; a balance that reaches zero retires
    the debt (is_active=False) rather than deleting it. Overpayment is not
    carried anywhere, the balance just stops at zero.
    """
    if amount <= 0:
        raise ValidationError({"amount": "must be greater than zero"})
    if not debt.is_active:
        raise ValidationError({"debt_id": "debt is no longer active"})

    balance = debt.remaining_balance - amount
    if balance <= BALANCE_EPSILON:
        return replace(debt, remaining_balance=0.0, is_active=False)
    return replace(debt, remaining_balance=round(balance, 2))
