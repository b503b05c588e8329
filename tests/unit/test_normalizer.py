"""Unit tests for debt and income normalization"""

import pytest

from debtplan_gateway.domain.exceptions import MissingRequiredField, ValidationError
from debtplan_gateway.domain.models import DebtCategory
from debtplan_gateway.domain.normalizer import (
    MINIMUM_EXCEEDS_BALANCE,
    derive_minimum_payment,
    normalize_debt,
    normalize_income,
    parse_amount,
)


def _raw_debt(**overrides):
    raw = {
        "id": "card-1",
        "name": "Visa",
        "category": "credit_card",
        "remaining_balance": 20_000,
        "interest_rate": 18,
        "minimum_payment": 800,
        "due_day": 25,
    }
    raw.update(overrides)
    return raw


def test_parse_amount_strips_grouping_separators():
    assert parse_amount("12,500.75", "x") == 12500.75
    assert parse_amount("1 000", "x") == 1000.0
    assert parse_amount("1\u00a0000", "x") == 1000.0
    assert parse_amount("1'000", "x") == 1000.0
    assert parse_amount(" 250 ", "x") == 250.0
    assert parse_amount(99, "x") == 99.0


@pytest.mark.parametrize("value", ["abc", "", "nan", float("inf"), True, None, [1]])
def test_parse_amount_rejects_non_numbers(value):
    with pytest.raises(ValidationError) as exc_info:
        parse_amount(value, "remaining_balance")

    assert "remaining_balance" in exc_info.value.errors


def test_normalize_debt_parses_formatted_strings():
    debt = normalize_debt(_raw_debt(remaining_balance="15,000", original_amount="20,000.00"))

    assert debt.remaining_balance == 15000.0
    assert debt.original_amount == 20000.0
    assert debt.category == DebtCategory.CREDIT_CARD
    assert debt.warnings == ()


def test_normalize_debt_original_amount_defaults_to_balance():
    debt = normalize_debt(_raw_debt())

    assert debt.original_amount == debt.remaining_balance


def test_revolving_minimum_is_one_percent_with_floor():
    """1% of balance, never below 500, never above the balance"""
    assert derive_minimum_payment(DebtCategory.CREDIT_CARD, 100_000, 18) == 1000.0
    assert derive_minimum_payment(DebtCategory.CREDIT_CARD, 20_000, 18) == 500.0
    assert derive_minimum_payment(DebtCategory.REVOLVING, 300, 18) == 300.0


def test_normalize_debt_derives_revolving_minimum_when_missing():
    debt = normalize_debt(_raw_debt(minimum_payment=None, remaining_balance=80_000))

    assert debt.minimum_payment == 800.0


def test_installment_minimum_from_remaining_term():
    # Zero interest: straight division
    assert derive_minimum_payment(DebtCategory.INSTALLMENT, 12_000, 0, remaining_term_months=12) == 1000.0

    # 12% APR over 12 months on 10,000 is 888.49 rounded up to the cent
    assert derive_minimum_payment(DebtCategory.PERSONAL, 10_000, 12, remaining_term_months=12) == 888.49


def test_installment_without_minimum_or_term_is_missing_field():
    with pytest.raises(MissingRequiredField) as exc_info:
        normalize_debt(_raw_debt(category="installment", minimum_payment=None))

    assert exc_info.value.field == "minimum_payment"
    # Callers catching ValidationError also see it
    assert isinstance(exc_info.value, ValidationError)


def test_minimum_above_balance_is_flagged_not_clamped():
    debt = normalize_debt(_raw_debt(remaining_balance=400, minimum_payment=500))

    assert debt.minimum_payment == 500.0
    assert MINIMUM_EXCEEDS_BALANCE in debt.warnings


def test_normalize_debt_reports_every_bad_field():
    with pytest.raises(ValidationError) as exc_info:
        normalize_debt(_raw_debt(name="", remaining_balance="abc", due_day=40, interest_rate=-1))

    errors = exc_info.value.errors
    assert set(errors) >= {"name", "remaining_balance", "due_day", "interest_rate"}


def test_remaining_balance_cannot_exceed_original_amount():
    with pytest.raises(ValidationError) as exc_info:
        normalize_debt(_raw_debt(original_amount=10_000, remaining_balance=12_000))

    assert "remaining_balance" in exc_info.value.errors


def test_due_day_is_required():
    with pytest.raises(ValidationError) as exc_info:
        normalize_debt(_raw_debt(due_day=None))

    assert exc_info.value.errors["due_day"] == "required"


def test_category_aliases_and_default():
    assert normalize_debt(_raw_debt(category="Mortgage")).category == DebtCategory.HOUSING
    assert normalize_debt(_raw_debt(category="car-loan")).category == DebtCategory.AUTO
    assert normalize_debt(_raw_debt(category=None)).category == DebtCategory.OTHER


def test_unknown_category_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        normalize_debt(_raw_debt(category="timeshare"))

    assert "category" in exc_info.value.errors


def test_normalize_income():
    income = normalize_income(
        {"gross_monthly_income": "50,000", "net_monthly_income": "42,000", "monthly_expense": 20_000}
    )

    assert income.gross_monthly_income == 50000.0
    assert income.net_monthly_income == 42000.0
    assert income.disposable_income == 22000.0


def test_normalize_income_gross_is_optional():
    income = normalize_income({"net_monthly_income": 30_000})

    assert income.gross_monthly_income is None
    assert income.monthly_expense == 0.0


def test_normalize_income_rejects_net_above_gross():
    with pytest.raises(ValidationError) as exc_info:
        normalize_income({"gross_monthly_income": 30_000, "net_monthly_income": 35_000})
    assert "net_monthly_income" in exc_info.value.errors


def test_normalize_income_net_is_optional():
    income = normalize_income({"gross_monthly_income": "50,000"})

    assert income.gross_monthly_income == 50000.0
    assert income.net_monthly_income is None
    assert income.disposable_income is None


def test_normalize_income_accepts_empty_snapshot():
    income = normalize_income({})

    assert income.gross_monthly_income is None
    assert income.net_monthly_income is None
