"""PUT/GET /v1/users/{user_id}/income - monthly income snapshot"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from debtplan_gateway.api.dependencies import get_request_id
from debtplan_gateway.api.v1.errors import domain_http_error, internal_error, not_found
from debtplan_gateway.api.v1.schemas import IncomeInput, IncomeResponse
from debtplan_gateway.domain.exceptions import ValidationError
from debtplan_gateway.domain.normalizer import normalize_income
from debtplan_gateway.infrastructure.database.models import UserIncome
from debtplan_gateway.infrastructure.database.repositories import IncomeRepository, to_income_profile
from debtplan_gateway.infrastructure.database.session import get_db

router = APIRouter()


def income_response(row: UserIncome) -> IncomeResponse:
    profile = to_income_profile(row)
    return IncomeResponse(
        user_id=row.user_id,
        gross_monthly_income=profile.gross_monthly_income,
        net_monthly_income=profile.net_monthly_income,
        monthly_expense=profile.monthly_expense,
        disposable_income=profile.disposable_income,
        updated_at=row.updated_at.isoformat() if row.updated_at else None,
    )


@router.put("/users/{user_id}/income", response_model=IncomeResponse)
def put_income(
    user_id: str,
    request_body: IncomeInput,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Replace the user's income snapshot.

    Only the latest snapshot is kept; amounts may be formatted strings.
    """
    request_id = get_request_id(request)

    try:
        income = normalize_income(request_body.model_dump())
        row = IncomeRepository(db).upsert(user_id, income)
        db.commit()
        db.refresh(row)

    except ValidationError as e:
        db.rollback()
        logging.warning(f"Invalid income: {e}", extra={"request_id": request_id})
        raise domain_http_error(e)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise internal_error()

    return income_response(row)


@router.get("/users/{user_id}/income", response_model=IncomeResponse)
def get_income(user_id: str, db: Session = Depends(get_db)):
    row = IncomeRepository(db).get(user_id)
    if not row:
        raise not_found("income")
    return income_response(row)
