"""Data access layer for debts, income, risk snapshots and plans"""

import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from debtplan_gateway.domain.models import (
    DebtCategory,
    DebtRecord,
    GoalType,
    IncomeProfile,
    PaymentType,
    PlanDebtItem,
    RepaymentPlan,
    RiskAssessment,
    Strategy,
)
from debtplan_gateway.domain.risk import TIER_FACTOR_LEVELS
from debtplan_gateway.infrastructure.database.models import (
    DebtPayment,
    DebtPlan,
    DebtPlanItem,
    RiskAssessmentSnapshot,
    UserDebt,
    UserIncome,
)


def to_debt_record(row: UserDebt) -> DebtRecord:
    """Map an ORM row to the engine's canonical record"""
    return DebtRecord(
        id=str(row.id),
        name=row.name,
        category=DebtCategory(row.category),
        original_amount=row.original_amount,
        remaining_balance=row.remaining_balance,
        interest_rate=row.interest_rate,
        minimum_payment=row.minimum_payment,
        due_day=row.due_day,
        is_active=row.is_active,
        warnings=tuple(row.warnings or ()),
    )


def to_income_profile(row: UserIncome) -> IncomeProfile:
    return IncomeProfile(
        net_monthly_income=row.net_monthly_income,
        monthly_expense=row.monthly_expense,
        gross_monthly_income=row.gross_monthly_income,
    )


def to_repayment_plan(row: DebtPlan) -> RepaymentPlan:
    """Rebuild a committed plan; schedules and risk are not stored"""
    items = tuple(
        PlanDebtItem(
            debt_id=item.debt_id,
            name=item.name,
            category=DebtCategory(item.category),
            remaining_balance=item.remaining_balance,
            interest_rate=item.interest_rate,
            minimum_payment=item.minimum_payment,
            payment_order=item.payment_order,
            payoff_month=item.payoff_month,
            interest_paid=item.interest_paid,
        )
        for item in row.items
    )
    return RepaymentPlan(
        strategy=Strategy(row.payment_strategy),
        goal_type=GoalType(row.goal_type),
        goal_weight=row.goal_weight,
        monthly_payment=row.monthly_payment,
        minimum_payment_total=row.minimum_payment_total,
        months_to_payoff=row.time_in_months,
        total_interest=row.total_interest,
        total_paid=row.total_paid,
        payoff_order=tuple(item.debt_id for item in items),
        debts=items,
        debt_type_id=row.debt_type_id,
        target_months=row.target_months,
        meets_target=(
            row.time_in_months <= row.target_months if row.target_months is not None else None
        ),
    )


class IncomeRepository:
    """Repository for the latest income snapshot per user"""

    def __init__(self, db: Session):
        self.db = db

    def upsert(self, user_id: str, income: IncomeProfile) -> UserIncome:
        """Replace the user's income snapshot"""
        row = self.get(user_id)
        if row is None:
            row = UserIncome(user_id=user_id)
            self.db.add(row)
        row.gross_monthly_income = income.gross_monthly_income
        row.net_monthly_income = income.net_monthly_income
        row.monthly_expense = income.monthly_expense
        self.db.flush()
        return row

    def get(self, user_id: str) -> Optional[UserIncome]:
        return self.db.query(UserIncome).filter(UserIncome.user_id == user_id).first()


class DebtRepository:
    """Repository for user debts and their payments"""

    def __init__(self, db: Session):
        self.db = db

    def create_debt(self, user_id: str, debt: DebtRecord) -> UserDebt:
        """Persist a normalized debt; the database assigns its id"""
        row = UserDebt(
            user_id=user_id,
            name=debt.name,
            category=debt.category.value,
            original_amount=debt.original_amount,
            remaining_balance=debt.remaining_balance,
            interest_rate=debt.interest_rate,
            minimum_payment=debt.minimum_payment,
            due_day=debt.due_day,
            warnings=list(debt.warnings),
            is_active=debt.is_active,
        )
        self.db.add(row)
        self.db.flush()  # Get ID without committing
        return row

    def get_debt(self, debt_id: uuid.UUID) -> Optional[UserDebt]:
        return self.db.query(UserDebt).filter(UserDebt.id == debt_id).first()

    def get_debts_by_user(self, user_id: str, include_inactive: bool = False) -> List[UserDebt]:
        """Fetch a user's debts, oldest first"""
        query = self.db.query(UserDebt).filter(UserDebt.user_id == user_id)
        if not include_inactive:
            query = query.filter(UserDebt.is_active.is_(True))
        return query.order_by(UserDebt.created_at.asc()).all()

    def record_payment(
        self,
        row: UserDebt,
        updated: DebtRecord,
        amount: float,
        payment_date: date,
        payment_type: PaymentType = PaymentType.REGULAR,
        notes: str | None = None,
    ) -> DebtPayment:
        """Store the payment and the debt's new balance together"""
        payment = DebtPayment(
            debt_id=row.id,
            amount=amount,
            payment_date=payment_date,
            payment_type=payment_type.value,
            notes=notes,
        )
        self.db.add(payment)
        row.remaining_balance = updated.remaining_balance
        row.is_active = updated.is_active
        self.db.flush()
        return payment

    def deactivate(self, row: UserDebt) -> UserDebt:
        """Logically retire a debt; rows are never deleted"""
        row.is_active = False
        self.db.flush()
        return row


class RiskAssessmentRepository:
    """Repository for cached DTI assessments"""

    def __init__(self, db: Session):
        self.db = db

    def create_snapshot(self, user_id: str, assessment: RiskAssessment) -> RiskAssessmentSnapshot:
        snapshot = RiskAssessmentSnapshot(
            user_id=user_id,
            dti_ratio=assessment.dti_ratio,
            tier=assessment.tier.value,
            factor_level=TIER_FACTOR_LEVELS[assessment.tier],
            total_minimum_payment=assessment.total_minimum_payment,
            income_base=assessment.income_base,
            income_basis=assessment.income_basis,
        )
        self.db.add(snapshot)
        self.db.flush()
        return snapshot

    def get_recent(self, user_id: str, limit: int = 5) -> List[RiskAssessmentSnapshot]:
        """Most recent snapshots first"""
        return (
            self.db.query(RiskAssessmentSnapshot)
            .filter(RiskAssessmentSnapshot.user_id == user_id)
            .order_by(RiskAssessmentSnapshot.created_at.desc())
            .limit(limit)
            .all()
        )


class PlanRepository:
    """Repository for committed repayment plans"""

    def __init__(self, db: Session):
        self.db = db

    def commit_plan(self, user_id: str, plan: RepaymentPlan) -> DebtPlan:
        """
        Supersede the user's active plan(s) and insert the new one.

        Both happen in the caller's transaction, so a user never ends up with
        two active plans.
        """
        (
            self.db.query(DebtPlan)
            .filter(DebtPlan.user_id == user_id, DebtPlan.is_active.is_(True))
            .update({DebtPlan.is_active: False}, synchronize_session="fetch")
        )

        db_plan = DebtPlan(
            user_id=user_id,
            goal_type=plan.goal_type.value,
            goal_weight=plan.goal_weight,
            payment_strategy=plan.strategy.value,
            monthly_payment=plan.monthly_payment,
            minimum_payment_total=plan.minimum_payment_total,
            time_in_months=plan.months_to_payoff,
            total_interest=plan.total_interest,
            total_paid=plan.total_paid,
            debt_type_id=plan.debt_type_id,
            target_months=plan.target_months,
            is_active=True,
        )
        self.db.add(db_plan)
        self.db.flush()

        # Create plan items
        for item in plan.debts:
            self.db.add(
                DebtPlanItem(
                    plan_id=db_plan.id,
                    debt_id=item.debt_id,
                    name=item.name,
                    category=item.category.value,
                    remaining_balance=item.remaining_balance,
                    interest_rate=item.interest_rate,
                    minimum_payment=item.minimum_payment,
                    payment_order=item.payment_order,
                    payoff_month=item.payoff_month,
                    interest_paid=item.interest_paid,
                )
            )
        self.db.flush()
        return db_plan

    def get_plan_by_id(self, plan_id: uuid.UUID) -> Optional[DebtPlan]:
        """Fetch plan with items"""
        return (
            self.db.query(DebtPlan)
            .filter(DebtPlan.id == plan_id)
            .first()
        )

    def get_plans_by_user(self, user_id: str, active: bool | None = None, limit: int = 20) -> List[DebtPlan]:
        """Fetch a user's plans, newest first"""
        query = self.db.query(DebtPlan).filter(DebtPlan.user_id == user_id)
        if active is not None:
            query = query.filter(DebtPlan.is_active.is_(active))
        return query.order_by(DebtPlan.created_at.desc()).limit(limit).all()
