"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Tuple


class DebtCategory(str, Enum):
    """Kind of liability; decides how a missing minimum payment is derived"""

    CREDIT_CARD = "credit_card"
    REVOLVING = "revolving"
    INSTALLMENT = "installment"
    PERSONAL = "personal"
    HOUSING = "housing"
    AUTO = "auto"
    BUSINESS = "business"
    INFORMAL = "informal"
    OTHER = "other"

    @property
    def is_revolving(self) -> bool:
        return self in (DebtCategory.CREDIT_CARD, DebtCategory.REVOLVING)

    @classmethod
    def from_label(cls, value: str) -> "DebtCategory":
        """Canonical value or a known alias ("car", "home", "Personal Loan"); ValueError otherwise"""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        if key in CATEGORY_ALIASES:
            return CATEGORY_ALIASES[key]
        return cls(key)


CATEGORY_ALIASES = {
    "home": DebtCategory.HOUSING,
    "mortgage": DebtCategory.HOUSING,
    "housing_loan": DebtCategory.HOUSING,
    "car": DebtCategory.AUTO,
    "vehicle": DebtCategory.AUTO,
    "car_loan": DebtCategory.AUTO,
    "vehicle_loan": DebtCategory.AUTO,
    "product_installment": DebtCategory.INSTALLMENT,
    "personal_loan": DebtCategory.PERSONAL,
    "business_loan": DebtCategory.BUSINESS,
    "informal_loan": DebtCategory.INFORMAL,
    "cash_card": DebtCategory.REVOLVING,
}


class RiskTier(str, Enum):
    """DTI risk tiers, ordered from safest to worst"""

    SAFE = "safe"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class Strategy(str, Enum):
    """Payoff strategy for money left over after minimum payments"""

    SNOWBALL = "snowball"
    AVALANCHE = "avalanche"
    PROPORTIONAL = "proportional"

    @property
    def goal_type(self) -> "GoalType":
        return _GOAL_BY_STRATEGY[self]


class GoalType(str, Enum):
    """User-facing goal a strategy serves"""

    FAST_RESULTS = "fast_results"
    BALANCED = "balanced"
    SAVE_INTEREST = "save_interest"


_GOAL_BY_STRATEGY = {
    Strategy.SNOWBALL: GoalType.FAST_RESULTS,
    Strategy.AVALANCHE: GoalType.SAVE_INTEREST,
    Strategy.PROPORTIONAL: GoalType.BALANCED,
}


class PaymentType(str, Enum):
    REGULAR = "regular"
    EXTRA = "extra"
    MINIMUM = "minimum"


@dataclass(frozen=True)
class DebtRecord:
    """Canonical liability used by every downstream calculation"""

    id: str
    name: str
    category: DebtCategory
    original_amount: float
    remaining_balance: float
    interest_rate: float  # Annual percentage, e.g. 18.0
    minimum_payment: float
    due_day: int
    is_active: bool = True
    warnings: Tuple[str, ...] = ()

    @property
    def is_open(self) -> bool:
        return self.is_active and self.remaining_balance > 0


@dataclass(frozen=True)
class IncomeProfile:
    """Monthly income snapshot for the payer"""

    net_monthly_income: float | None = None
    monthly_expense: float = 0.0
    gross_monthly_income: float | None = None

    @property
    def disposable_income(self) -> float | None:
        # Negative values are a risk signal and are never clamped
        if self.net_monthly_income is None:
            return None
        return self.net_monthly_income - self.monthly_expense


@dataclass(frozen=True)
class RiskAssessment:
    """Output of the DTI calculator; derived, never the source of truth"""

    dti_ratio: float
    tier: RiskTier
    label: str
    guidance: str
    total_minimum_payment: float
    income_base: float
    income_basis: str  # "gross" or "net"
    disposable_income: float | None


@dataclass(frozen=True)
class PayoffOrder:
    """Order in which extra payment is applied (Snowball / Avalanche)"""

    strategy: Strategy
    order: Tuple[str, ...]


@dataclass(frozen=True)
class PayoffWeights:
    """Balance shares used to split extra payment (Proportional)"""

    weights: Dict[str, float]
    strategy: Strategy = Strategy.PROPORTIONAL


@dataclass(frozen=True)
class DebtMonth:
    """One debt's activity within a simulated month"""

    debt_id: str
    interest: float
    principal: float
    payment: float
    remaining_balance: float


@dataclass(frozen=True)
class MonthSchedule:
    """All payments made in one simulated month"""

    month: int
    payments: Tuple[DebtMonth, ...]
    total_paid: float
    total_interest: float
    remaining_balance: float


@dataclass(frozen=True)
class Projection:
    """Result of the month-by-month amortization simulation"""

    months_to_payoff: int
    total_interest: float
    total_paid: float
    payoff_months: Dict[str, int]
    interest_by_debt: Dict[str, float]
    schedule: Tuple[MonthSchedule, ...] = ()


@dataclass(frozen=True)
class PlanDebtItem:
    """Per-debt line of a repayment plan"""

    debt_id: str
    name: str
    category: DebtCategory
    remaining_balance: float
    interest_rate: float
    minimum_payment: float
    payment_order: int
    payoff_month: int
    interest_paid: float
    payoff_date: date | None = None


@dataclass(frozen=True)
class RepaymentPlan:
    """Chosen strategy and its computed trajectory"""

    strategy: Strategy
    goal_type: GoalType
    goal_weight: int
    monthly_payment: float
    minimum_payment_total: float
    months_to_payoff: int
    total_interest: float
    total_paid: float
    payoff_order: Tuple[str, ...]
    debts: Tuple[PlanDebtItem, ...]
    schedule: Tuple[MonthSchedule, ...] = ()
    debt_type_id: str = "all"
    risk: RiskAssessment | None = None
    target_months: int | None = None
    meets_target: bool | None = None
    start_date: date | None = None
    payoff_date: date | None = None


@dataclass(frozen=True)
class PlanAlternative:
    """A faster plan shown next to the current one; deltas are against the current plan"""

    kind: str  # "reduced_time" or "accelerated"
    plan: RepaymentPlan
    months_saved: int
    payment_delta: float
    interest_saved: float


@dataclass(frozen=True)
class PlanComparison:
    """
    Current plan, the minimums-only baseline and faster alternatives.

    The baseline is None when paying only the minimums never clears the debts.
    """

    current: RepaymentPlan
    minimum_only: RepaymentPlan | None
    months_saved_vs_minimum: int | None
    interest_saved_vs_minimum: float | None
    alternatives: Tuple[PlanAlternative, ...]
