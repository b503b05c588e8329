"""Debt endpoints - record, list, pay down and retire user debts"""

import logging
from datetime import date
from typing import Dict, List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from debtplan_gateway.api.dependencies import get_request_id
from debtplan_gateway.api.v1.errors import (
    domain_http_error,
    internal_error,
    not_found,
    parse_uuid,
)
from debtplan_gateway.api.v1.schemas import (
    DebtInput,
    DebtListResponse,
    DebtResponse,
    PaymentRequest,
    PaymentResponse,
)
from debtplan_gateway.domain.exceptions import ValidationError
from debtplan_gateway.domain.models import DebtRecord
from debtplan_gateway.domain.normalizer import normalize_debt, parse_amount
from debtplan_gateway.domain.payments import apply_payment
from debtplan_gateway.infrastructure.database.models import UserDebt
from debtplan_gateway.infrastructure.database.repositories import DebtRepository, to_debt_record
from debtplan_gateway.infrastructure.database.session import get_db

router = APIRouter()


def normalize_inputs(debts: List[DebtInput]) -> List[DebtRecord]:
    """
    Normalize inline debts for the stateless endpoints.

    Entries without an id get "debt-<position>". Errors from every entry are
    reported together, keyed as "debts[i].field".
    """
    records: List[DebtRecord] = []
    errors: Dict[str, str] = {}
    for index, debt in enumerate(debts):
        raw = debt.model_dump()
        raw["id"] = debt.id or f"debt-{index + 1}"
        try:
            records.append(normalize_debt(raw))
        except ValidationError as e:
            errors.update({f"debts[{index}].{field}": msg for field, msg in e.errors.items()})
    if errors:
        raise ValidationError(errors)
    return records


def debt_response(row: UserDebt) -> DebtResponse:
    return DebtResponse(
        id=str(row.id),
        name=row.name,
        category=row.category,
        original_amount=row.original_amount,
        remaining_balance=row.remaining_balance,
        interest_rate=row.interest_rate,
        minimum_payment=row.minimum_payment,
        due_day=row.due_day,
        is_active=row.is_active,
        warnings=list(row.warnings or []),
        created_at=row.created_at.isoformat() if row.created_at else None,
    )


@router.post("/users/{user_id}/debts", response_model=DebtResponse, status_code=201)
def create_debt(
    user_id: str,
    request_body: DebtInput,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Normalize and store a debt.

    Missing minimum payments are derived (1% / 500 floor for revolving debt,
    annuity payment for installment debt with a remaining term). A minimum
    larger than the balance is kept but flagged in `warnings`.
    """
    request_id = get_request_id(request)

    try:
        raw = request_body.model_dump()
        # Storage assigns the real id
        raw["id"] = request_body.id or "new"
        debt = normalize_debt(raw)
        row = DebtRepository(db).create_debt(user_id, debt)
        db.commit()
        db.refresh(row)

    except ValidationError as e:
        db.rollback()
        logging.warning(f"Invalid debt: {e}", extra={"request_id": request_id})
        raise domain_http_error(e)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise internal_error()

    return debt_response(row)


@router.get("/users/{user_id}/debts", response_model=DebtListResponse)
def list_debts(
    user_id: str,
    include_inactive: bool = Query(False, description="Include paid off and removed debts"),
    db: Session = Depends(get_db),
):
    rows = DebtRepository(db).get_debts_by_user(user_id, include_inactive=include_inactive)
    return DebtListResponse(user_id=user_id, debts=[debt_response(row) for row in rows])


@router.post("/debts/{debt_id}/payments", response_model=PaymentResponse, status_code=201)
def record_payment(
    debt_id: str,
    request_body: PaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Apply a payment to a debt.

    The balance never drops below zero; a debt paid off in full is retired.
    """
    request_id = get_request_id(request)
    debt_uuid = parse_uuid(debt_id, "debt")

    repo = DebtRepository(db)
    row = repo.get_debt(debt_uuid)
    if not row:
        raise not_found("debt")

    try:
        amount = parse_amount(request_body.amount, "amount")
        updated = apply_payment(to_debt_record(row), amount)
        payment = repo.record_payment(
            row,
            updated,
            amount=amount,
            payment_date=request_body.payment_date or date.today(),
            payment_type=request_body.payment_type,
            notes=request_body.notes,
        )
        db.commit()

    except ValidationError as e:
        db.rollback()
        logging.warning(f"Invalid payment: {e}", extra={"request_id": request_id})
        raise domain_http_error(e)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise internal_error()

    return PaymentResponse(
        payment_id=str(payment.id),
        debt_id=str(row.id),
        amount=payment.amount,
        payment_date=payment.payment_date,
        payment_type=payment.payment_type,
        remaining_balance=row.remaining_balance,
        is_active=row.is_active,
    )


@router.delete("/debts/{debt_id}", response_model=DebtResponse)
def deactivate_debt(
    debt_id: str,
    request: Request,
    db: Session = Depends(get_db),
):
    """Retire a debt; it stays in storage with is_active=False"""
    request_id = get_request_id(request)
    debt_uuid = parse_uuid(debt_id, "debt")

    repo = DebtRepository(db)
    row = repo.get_debt(debt_uuid)
    if not row:
        raise not_found("debt")

    try:
        repo.deactivate(row)
        db.commit()

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise internal_error()

    return debt_response(row)
