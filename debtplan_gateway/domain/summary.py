"""Plain-dict summaries of engine output for outside consumers (AI coaching)"""

from typing import Any, Dict, Iterable

from debtplan_gateway.domain.models import DebtRecord, RepaymentPlan, RiskAssessment


def build_insight_summary(
    risk: RiskAssessment | None,
    debts: Iterable[DebtRecord],
    plan: RepaymentPlan | None = None,
) -> Dict[str, Any]:
    """
    Serializable snapshot of a user's situation.

    Contains only plain str/int/float/bool/None/list/dict values so it can be
    sent as JSON as-is. Identifiers are kept; names are included because the
    coaching text refers to debts by name.
    """
    summary: Dict[str, Any] = {
        "risk": None,
        "debts": [
            {
                "id": d.id,
                "name": d.name,
                "category": d.category.value,
                "remaining_balance": d.remaining_balance,
                "interest_rate": d.interest_rate,
                "minimum_payment": d.minimum_payment,
                "due_day": d.due_day,
            }
            for d in debts
            if d.is_open
        ],
        "plan": None,
    }

    if risk is not None:
        summary["risk"] = {
            "dti_ratio": round(risk.dti_ratio, 2),
            "tier": risk.tier.value,
            "label": risk.label,
            "guidance": risk.guidance,
            "income_basis": risk.income_basis,
            "disposable_income": risk.disposable_income,
        }

    if plan is not None:
        summary["plan"] = {
            "strategy": plan.strategy.value,
            "goal_type": plan.goal_type.value,
            "monthly_payment": plan.monthly_payment,
            "months_to_payoff": plan.months_to_payoff,
            "total_interest": plan.total_interest,
            "payoff_order": list(plan.payoff_order),
        }

    return summary
