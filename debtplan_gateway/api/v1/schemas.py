"""Pydantic schemas for API request/response validation"""

from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, model_validator

from debtplan_gateway.domain.models import PaymentType, Strategy

# User-entered amounts may arrive as numbers or as formatted strings ("12,500.50");
# the normalizer does the parsing so every bad field is reported together
Amount = Union[float, str]


class DebtInput(BaseModel):
    """Raw debt entry as typed by the user"""

    id: Optional[str] = Field(None, description="Caller-side identifier; assigned when omitted")
    name: Optional[str] = None
    category: Optional[str] = Field(None, description="credit_card, installment, housing, ...")
    original_amount: Optional[Amount] = None
    remaining_balance: Optional[Amount] = None
    interest_rate: Amount = Field(0, description="Annual percentage rate, e.g. 18.5")
    minimum_payment: Optional[Amount] = None
    due_day: Optional[Union[int, str]] = None
    remaining_term_months: Optional[Union[int, str]] = None


class DebtResponse(BaseModel):
    """A normalized debt"""

    id: str
    name: str
    category: str
    original_amount: float
    remaining_balance: float
    interest_rate: float
    minimum_payment: float
    due_day: int
    is_active: bool
    warnings: List[str] = []
    created_at: Optional[str] = None


class DebtListResponse(BaseModel):
    """Response for GET /v1/users/{user_id}/debts"""

    user_id: str
    debts: List[DebtResponse]


class IncomeInput(BaseModel):
    """Monthly income snapshot"""

    gross_monthly_income: Optional[Amount] = None
    net_monthly_income: Optional[Amount] = None
    monthly_expense: Optional[Amount] = None


class IncomeResponse(BaseModel):
    """Response for PUT/GET /v1/users/{user_id}/income"""

    user_id: str
    gross_monthly_income: Optional[float] = None
    net_monthly_income: Optional[float] = None
    monthly_expense: float
    disposable_income: Optional[float] = None
    updated_at: Optional[str] = None


class PaymentRequest(BaseModel):
    """Request body for POST /v1/debts/{debt_id}/payments"""

    amount: Amount
    payment_date: Optional[date] = Field(None, description="Defaults to today")
    payment_type: PaymentType = PaymentType.REGULAR
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    """Response for POST /v1/debts/{debt_id}/payments"""

    payment_id: str
    debt_id: str
    amount: float
    payment_date: date
    payment_type: str
    remaining_balance: float
    is_active: bool


class RiskAssessmentRequest(BaseModel):
    """Request body for POST /v1/risk-assessment"""

    debts: List[DebtInput] = Field(default_factory=list)
    income: IncomeInput


class RiskAssessmentResponse(BaseModel):
    """DTI ratio with its tier and guidance"""

    dti_ratio: float
    tier: str
    label: str
    guidance: str
    factor_level: str
    total_minimum_payment: float
    income_base: float
    income_basis: str
    disposable_income: Optional[float] = None


class RiskHistoryItem(BaseModel):
    """Single cached assessment"""

    assessment_id: str
    dti_ratio: float
    tier: str
    factor_level: str
    total_minimum_payment: float
    income_base: float
    income_basis: str
    created_at: str


class RiskHistoryResponse(BaseModel):
    """Response for GET /v1/users/{user_id}/risk-assessment/history"""

    user_id: str
    assessments: List[RiskHistoryItem]


class PlanRequest(BaseModel):
    """Slider inputs: a monthly budget or a target payoff time, plus the goal weighting"""

    monthly_payment: Optional[Amount] = None
    target_months: Optional[int] = Field(None, gt=0)
    goal_weight: int = Field(50, ge=0, le=100, description="0 = quick wins, 100 = least interest")
    strategy: Optional[Strategy] = Field(None, description="Overrides the goal weighting")
    debt_type_id: str = Field("all", description="Restrict the plan to one debt category")
    include_schedule: bool = False
    start_date: Optional[date] = Field(None, description="Month 1 of the plan; enables payoff dates")

    @model_validator(mode="after")
    def check_payment_or_target(self) -> "PlanRequest":
        if (self.monthly_payment is None) == (self.target_months is None):
            raise ValueError("provide exactly one of monthly_payment or target_months")
        return self


class PlanPreviewRequest(PlanRequest):
    """Request body for POST /v1/plans/preview"""

    debts: List[DebtInput] = Field(..., min_length=1)
    income: Optional[IncomeInput] = None


class DebtMonthSchema(BaseModel):
    debt_id: str
    interest: float
    principal: float
    payment: float
    remaining_balance: float


class MonthScheduleSchema(BaseModel):
    """One simulated month"""

    month: int
    payments: List[DebtMonthSchema]
    total_paid: float
    total_interest: float
    remaining_balance: float


class PlanDebtSchema(BaseModel):
    """One debt's position and outcome within a plan"""

    debt_id: str
    name: str
    category: str
    remaining_balance: float
    interest_rate: float
    minimum_payment: float
    payment_order: int
    payoff_month: int
    interest_paid: float
    payoff_date: Optional[date] = None


class PlanResponse(BaseModel):
    """Response for plan preview, commit and fetch"""

    plan_id: Optional[str] = None
    user_id: Optional[str] = None
    is_active: Optional[bool] = None
    strategy: str
    goal_type: str
    goal_weight: int
    monthly_payment: float
    minimum_payment_total: float
    months_to_payoff: int
    total_interest: float
    total_paid: float
    payoff_order: List[str]
    debt_type_id: str
    target_months: Optional[int] = None
    meets_target: Optional[bool] = None
    payoff_date: Optional[date] = None
    debts: List[PlanDebtSchema]
    schedule: List[MonthScheduleSchema] = []
    risk: Optional[RiskAssessmentResponse] = None
    created_at: Optional[str] = None


class PlanCompareRequest(BaseModel):
    """Request body for POST /v1/plans/compare"""

    debts: List[DebtInput] = Field(..., min_length=1)
    income: Optional[IncomeInput] = None
    monthly_payment: Amount
    goal_weight: int = Field(50, ge=0, le=100, description="0 = quick wins, 100 = least interest")
    strategy: Optional[Strategy] = Field(None, description="Overrides the goal weighting")
    debt_type_id: str = Field("all", description="Restrict the plans to one debt category")
    start_date: Optional[date] = None


class PlanAlternativeSchema(BaseModel):
    """A faster plan with its deltas against the current plan"""

    kind: str
    plan: PlanResponse
    months_saved: int
    payment_delta: float
    interest_saved: float


class PlanComparisonResponse(BaseModel):
    """Response for POST /v1/plans/compare"""

    current: PlanResponse
    minimum_only: Optional[PlanResponse] = None
    months_saved_vs_minimum: Optional[int] = None
    interest_saved_vs_minimum: Optional[float] = None
    alternatives: List[PlanAlternativeSchema]


class PlanHistoryItem(BaseModel):
    """Single plan in a user's plan list"""

    plan_id: str
    strategy: str
    goal_type: str
    monthly_payment: float
    months_to_payoff: int
    total_interest: float
    is_active: bool
    created_at: str


class PlanListResponse(BaseModel):
    """Response for GET /v1/users/{user_id}/plans"""

    user_id: str
    plans: List[PlanHistoryItem]


class InsightResponse(BaseModel):
    """Response for POST /v1/users/{user_id}/insights"""

    user_id: str
    tips: List[str]
    summary: Dict[str, Any]
