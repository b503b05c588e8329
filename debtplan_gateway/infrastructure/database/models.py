"""SQLAlchemy ORM models for debts, income, cached assessments and plans"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Text,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserIncome(Base):
    """Latest income snapshot for a user (no history kept)"""

    __tablename__ = "user_income"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, unique=True, index=True)
    gross_monthly_income = Column(Float, nullable=True)
    net_monthly_income = Column(Float, nullable=True)
    monthly_expense = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class UserDebt(Base):
    """A liability recorded by a user"""

    __tablename__ = "user_debt"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="other")
    original_amount = Column(Float, nullable=False)
    remaining_balance = Column(Float, nullable=False)
    interest_rate = Column(Float, nullable=False, default=0.0)
    minimum_payment = Column(Float, nullable=False)
    due_day = Column(Integer, nullable=False)
    warnings = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    payments = relationship("DebtPayment", back_populates="debt", cascade="all, delete-orphan")


class DebtPayment(Base):
    """Payment applied to a debt"""

    __tablename__ = "debt_payment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    debt_id = Column(Uuid, ForeignKey("user_debt.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_type = Column(Text, nullable=False, default="regular")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    debt = relationship("UserDebt", back_populates="payments")


class RiskAssessmentSnapshot(Base):
    """Cached DTI assessment; always recomputable from debts and income"""

    __tablename__ = "risk_assessment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    dti_ratio = Column(Float, nullable=False)
    tier = Column(Text, nullable=False)
    factor_level = Column(Text, nullable=False)
    total_minimum_payment = Column(Float, nullable=False)
    income_base = Column(Float, nullable=False)
    income_basis = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class DebtPlan(Base):
    """Committed repayment plan; superseded plans stay with is_active=False"""

    __tablename__ = "debt_plan"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    goal_type = Column(Text, nullable=False)
    goal_weight = Column(Integer, nullable=False)
    payment_strategy = Column(Text, nullable=False)
    monthly_payment = Column(Float, nullable=False)
    minimum_payment_total = Column(Float, nullable=False)
    time_in_months = Column(Integer, nullable=False)
    total_interest = Column(Float, nullable=False)
    total_paid = Column(Float, nullable=False)
    debt_type_id = Column(Text, nullable=False, default="all")
    target_months = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    items = relationship(
        "DebtPlanItem",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="DebtPlanItem.payment_order",
    )


class DebtPlanItem(Base):
    """One debt's position and outcome within a plan"""

    __tablename__ = "debt_plan_item"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    plan_id = Column(Uuid, ForeignKey("debt_plan.id", ondelete="CASCADE"), nullable=False)
    debt_id = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    remaining_balance = Column(Float, nullable=False)
    interest_rate = Column(Float, nullable=False)
    minimum_payment = Column(Float, nullable=False)
    payment_order = Column(Integer, nullable=False)
    payoff_month = Column(Integer, nullable=False)
    interest_paid = Column(Float, nullable=False)

    plan = relationship("DebtPlan", back_populates="items")
