"""Normalization of raw, user-entered debt and income values into canonical records"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping

from debtplan_gateway.domain.exceptions import MissingRequiredField, ValidationError
from debtplan_gateway.domain.models import DebtCategory, DebtRecord, IncomeProfile
from debtplan_gateway.utils.money import ceil_cents, round_cents

# Default minimum for revolving debt: 1% of balance, never below 500
REVOLVING_MINIMUM_RATE = 0.01
REVOLVING_MINIMUM_FLOOR = 500.0

_GROUPING_SEPARATORS = (",", "_", " ", "\u00a0", "'")

MINIMUM_EXCEEDS_BALANCE = "minimum_payment exceeds remaining balance plus one month of interest"


def parse_amount(value: Any, field: str) -> float:
    """
    Parse a user-entered number, stripping grouping separators.

    Accepts int, float, Decimal or str ("12,500.75", "1 000"). Booleans,
    NaN, infinities and unparsable strings raise ValidationError.
    Sign is not checked here.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError({field: "must be a number"})

    if isinstance(value, str):
        text = value.strip()
        for separator in _GROUPING_SEPARATORS:
            text = text.replace(separator, "")
        if not text:
            raise ValidationError({field: "must be a number"})
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise ValidationError({field: f"could not parse '{value}' as a number"})
        if not number.is_finite():
            raise ValidationError({field: "must be a finite number"})
        return float(number)

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        if math.isnan(number) or math.isinf(number):
            raise ValidationError({field: "must be a finite number"})
        return number

    raise ValidationError({field: "must be a number"})


def _parse_non_negative(value: Any, field: str) -> float:
    number = parse_amount(value, field)
    if number < 0:
        raise ValidationError({field: "must not be negative"})
    return number


def _parse_category(value: Any) -> DebtCategory:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DebtCategory.OTHER
    if isinstance(value, DebtCategory):
        return value
    try:
        return DebtCategory.from_label(value)
    except ValueError:
        raise ValidationError({"category": f"unknown category '{value}'"})


def _parse_due_day(value: Any) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError({"due_day": "required"})
    number = parse_amount(value, "due_day")
    if number != int(number):
        raise ValidationError({"due_day": "must be a whole day of the month"})
    if not 1 <= number <= 31:
        raise ValidationError({"due_day": "must be between 1 and 31"})
    return int(number)


def derive_minimum_payment(
    category: DebtCategory,
    remaining_balance: float,
    interest_rate: float,
    remaining_term_months: int | None = None,
) -> float:
    """
    Default minimum payment when the user did not enter one.

    - Revolving (credit card, cash card): 1% of balance, floored at 500,
      never more than the balance itself
    - Installment-type with a known remaining term: level annuity payment
      B * r / (1 - (1 + r)^-n), or B / n at 0% interest
    - Anything else cannot be guessed

    Raises:
        MissingRequiredField: installment-type debt without a remaining term
    """
    if remaining_balance <= 0:
        return 0.0

    if category.is_revolving:
        derived = max(remaining_balance * REVOLVING_MINIMUM_RATE, REVOLVING_MINIMUM_FLOOR)
        return round_cents(min(derived, remaining_balance))

    if remaining_term_months is None:
        raise MissingRequiredField(
            "minimum_payment",
            "required for installment debts unless remaining_term_months is given",
        )

    monthly_rate = interest_rate / 100 / 12
    if monthly_rate == 0:
        return ceil_cents(remaining_balance / remaining_term_months)
    payment = remaining_balance * monthly_rate / (1 - (1 + monthly_rate) ** -remaining_term_months)
    return ceil_cents(payment)


def check_minimum_payment(
    minimum_payment: float, remaining_balance: float, interest_rate: float
) -> List[str]:
    """Flag (do not clamp) a minimum larger than one month's payoff amount"""
    one_period_owed = remaining_balance * (1 + interest_rate / 100 / 12)
    if minimum_payment > one_period_owed + 0.005:
        return [MINIMUM_EXCEEDS_BALANCE]
    return []


def normalize_debt(raw: Mapping[str, Any]) -> DebtRecord:
    """
    Validate and normalize one raw debt entry.

    Recognized keys: id, name, category, original_amount, remaining_balance,
    interest_rate, minimum_payment, due_day, remaining_term_months, is_active.

    Every invalid field is reported at once; nothing is partially applied.

    Raises:
        ValidationError: one or more fields are malformed or out of range
        MissingRequiredField: minimum payment absent and no default applies
    """
    errors: Dict[str, str] = {}
    values: Dict[str, Any] = {}

    def collect(field: str, parser, *args) -> None:
        try:
            values[field] = parser(*args)
        except ValidationError as e:
            errors.update(e.errors)

    debt_id = raw.get("id")
    if debt_id is None or not str(debt_id).strip():
        errors["id"] = "required"
    name = raw.get("name")
    if name is None or not str(name).strip():
        errors["name"] = "required"

    collect("category", _parse_category, raw.get("category"))
    collect("remaining_balance", _parse_non_negative, raw.get("remaining_balance"), "remaining_balance")
    collect("interest_rate", _parse_non_negative, raw.get("interest_rate", 0), "interest_rate")
    collect("due_day", _parse_due_day, raw.get("due_day"))

    if raw.get("original_amount") not in (None, ""):
        collect("original_amount", _parse_non_negative, raw.get("original_amount"), "original_amount")
    elif "remaining_balance" in values:
        # Missing original amount: the debt is taken as recorded at its current balance
        values["original_amount"] = values["remaining_balance"]

    if raw.get("minimum_payment") not in (None, ""):
        collect("minimum_payment", _parse_non_negative, raw.get("minimum_payment"), "minimum_payment")

    term = raw.get("remaining_term_months")
    if term not in (None, ""):
        try:
            parsed_term = parse_amount(term, "remaining_term_months")
            if parsed_term != int(parsed_term) or parsed_term < 1:
                errors["remaining_term_months"] = "must be a positive whole number of months"
            else:
                values["remaining_term_months"] = int(parsed_term)
        except ValidationError as e:
            errors.update(e.errors)

    if (
        "original_amount" in values
        and "remaining_balance" in values
        and values["remaining_balance"] > values["original_amount"]
    ):
        errors["remaining_balance"] = "must not exceed original_amount"

    if errors:
        raise ValidationError(errors)

    balance = values["remaining_balance"]
    rate = values["interest_rate"]
    category = values["category"]

    warnings: List[str] = []
    if "minimum_payment" in values:
        minimum = values["minimum_payment"]
        warnings.extend(check_minimum_payment(minimum, balance, rate))
    else:
        minimum = derive_minimum_payment(category, balance, rate, values.get("remaining_term_months"))

    return DebtRecord(
        id=str(debt_id).strip(),
        name=str(name).strip(),
        category=category,
        original_amount=values["original_amount"],
        remaining_balance=balance,
        interest_rate=rate,
        minimum_payment=minimum,
        due_day=values["due_day"],
        is_active=bool(raw.get("is_active", True)),
        warnings=tuple(warnings),
    )


def normalize_income(raw: Mapping[str, Any]) -> IncomeProfile:
    """
    Validate and normalize an income snapshot.

    Keys: gross_monthly_income, net_monthly_income, monthly_expense; all optional.
    Gross, when positive, must not be below net. An income with neither gross
    nor net is accepted here and rejected by the risk calculator as
    InsufficientIncomeData.
    """
    errors: Dict[str, str] = {}
    values: Dict[str, float] = {}

    for field in ("net_monthly_income", "monthly_expense", "gross_monthly_income"):
        value = raw.get(field)
        if value in (None, ""):
            continue
        try:
            values[field] = _parse_non_negative(value, field)
        except ValidationError as e:
            errors.update(e.errors)

    gross = values.get("gross_monthly_income")
    net = values.get("net_monthly_income")
    if gross and net is not None and net > gross:
        errors["net_monthly_income"] = "must not exceed gross_monthly_income"

    if errors:
        raise ValidationError(errors)

    return IncomeProfile(
        net_monthly_income=net,
        monthly_expense=values.get("monthly_expense", 0.0),
        gross_monthly_income=gross,
    )
