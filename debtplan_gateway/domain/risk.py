"""DTI risk calculator - debt-to-income ratio and risk tier classification"""

from decimal import Decimal
from typing import Dict, Iterable, Tuple

from debtplan_gateway.domain.exceptions import InsufficientIncomeData
from debtplan_gateway.domain.models import DebtRecord, IncomeProfile, RiskAssessment, RiskTier
from debtplan_gateway.utils.money import to_decimal

# Inclusive upper bounds (percent) for each tier; above the last bound is critical
TIER_THRESHOLDS: Tuple[Tuple[Decimal, RiskTier], ...] = (
    (Decimal("40"), RiskTier.SAFE),
    (Decimal("60"), RiskTier.MODERATE),
    (Decimal("80"), RiskTier.HIGH),
)

TIER_LABELS: Dict[RiskTier, str] = {
    RiskTier.SAFE: "Safe",
    RiskTier.MODERATE: "Moderate",
    RiskTier.HIGH: "High",
    RiskTier.CRITICAL: "Critical",
}

TIER_GUIDANCE: Dict[RiskTier, str] = {
    RiskTier.SAFE: "Healthy level. Debt can be managed without cutting into essential spending.",
    RiskTier.MODERATE: "Debt is starting to squeeze savings and liquidity, but is still manageable.",
    RiskTier.HIGH: "Heavy debt load. Income is running short after debt payments.",
    RiskTier.CRITICAL: "Cash flow may not keep up with payments and the debt is close to default.",
}

# Coarse factor level stored with cached assessments
TIER_FACTOR_LEVELS: Dict[RiskTier, str] = {
    RiskTier.SAFE: "low",
    RiskTier.MODERATE: "medium",
    RiskTier.HIGH: "high",
    RiskTier.CRITICAL: "high",
}


def total_minimum_payment(debts: Iterable[DebtRecord]) -> float:
    """Sum of minimum payments over open debts (zero balance or inactive excluded)"""
    total = sum((to_decimal(d.minimum_payment) for d in debts if d.is_open), Decimal("0"))
    return float(total)


def income_base(income: IncomeProfile) -> Tuple[float, str]:
    """
    Pick the DTI denominator.

    Gross monthly income is the standard denominator; net income is only a
    fallback when gross is unknown or zero.

    Returns: (amount, "gross" | "net")
    """
    if income.gross_monthly_income is not None and income.gross_monthly_income > 0:
        return income.gross_monthly_income, "gross"
    return income.net_monthly_income or 0.0, "net"


def calculate_dti_ratio(debts: Iterable[DebtRecord], income: IncomeProfile) -> Decimal:
    """
    DTI = (sum of minimum payments / income base) * 100, uncapped.

    Decimal arithmetic keeps tier boundaries exact (20,000 / 50,000 is 40, not
    40.000000000000001).

    Raises:
        InsufficientIncomeData: neither gross nor net income is positive, so the
            ratio is undefined
    """
    base, _ = income_base(income)
    if base <= 0:
        raise InsufficientIncomeData("Income is zero or missing; debt-to-income cannot be assessed")

    minimums = to_decimal(total_minimum_payment(debts))
    return minimums / to_decimal(base) * 100


def determine_risk_tier(dti_ratio: Decimal | float) -> RiskTier:
    """
    Map a DTI percentage to a tier (inclusive upper bounds).

    - ratio <= 40:       safe
    - 40 < ratio <= 60:  moderate
    - 60 < ratio <= 80:  high
    - ratio > 80:        critical
    """
    ratio = dti_ratio if isinstance(dti_ratio, Decimal) else to_decimal(dti_ratio)
    for upper_bound, tier in TIER_THRESHOLDS:
        if ratio <= upper_bound:
            return tier
    return RiskTier.CRITICAL


def assess_risk(debts: Iterable[DebtRecord], income: IncomeProfile) -> RiskAssessment:
    """
    Main entry point: compute DTI and its tier from raw debts and income.

    Recomputed on every call; never reads a cached assessment.
    """
    debts = list(debts)
    ratio = calculate_dti_ratio(debts, income)
    tier = determine_risk_tier(ratio)
    base, basis = income_base(income)

    return RiskAssessment(
        dti_ratio=float(ratio),
        tier=tier,
        label=TIER_LABELS[tier],
        guidance=TIER_GUIDANCE[tier],
        total_minimum_payment=total_minimum_payment(debts),
        income_base=base,
        income_basis=basis,
        disposable_income=income.disposable_income,
    )
