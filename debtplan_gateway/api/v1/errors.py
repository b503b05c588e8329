"""Translation of domain exceptions into HTTP errors"""

import uuid
from typing import Any

from fastapi import HTTPException

from debtplan_gateway.domain.exceptions import (
    DomainException,
    InfeasibleBudget,
    InsightAPIError,
    InsufficientIncomeData,
    MissingRequiredField,
    PlanDoesNotConverge,
    ValidationError,
)


def http_error(status_code: int, error: str, message: str, **extra: Any) -> HTTPException:
    """HTTPException whose detail always has a machine-readable code and a message"""
    return HTTPException(status_code=status_code, detail={"error": error, "message": message, **extra})


def error_code(exc: DomainException) -> str:
    """Stable code for a domain exception, also used as the rejection metric label"""
    if isinstance(exc, MissingRequiredField):
        return "missing_required_field"
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, InfeasibleBudget):
        return "infeasible_budget"
    if isinstance(exc, PlanDoesNotConverge):
        return "plan_does_not_converge"
    if isinstance(exc, InsufficientIncomeData):
        return "insufficient_income_data"
    if isinstance(exc, InsightAPIError):
        return "insight_unavailable"
    return "domain_error"


def domain_http_error(exc: DomainException) -> HTTPException:
    """
    Map a domain exception to its HTTP response.

    - ValidationError / MissingRequiredField -> 422 with the field map
    - InfeasibleBudget -> 422 with the required minimum
    - PlanDoesNotConverge, InsufficientIncomeData -> 422
    - InsightAPIError -> 503
    """
    code = error_code(exc)

    if isinstance(exc, ValidationError):
        return http_error(422, code, str(exc), fields=exc.errors)
    if isinstance(exc, InfeasibleBudget):
        return http_error(
            422,
            code,
            str(exc),
            requested=round(exc.requested, 2),
            required_minimum=round(exc.required, 2),
        )
    if isinstance(exc, PlanDoesNotConverge):
        return http_error(422, code, str(exc), max_months=exc.max_months)
    if isinstance(exc, InsightAPIError):
        return http_error(503, code, "Insight service unavailable")
    return http_error(422, code, str(exc))


def parse_uuid(value: str, label: str) -> uuid.UUID:
    """Parse a path id, 400 when malformed"""
    try:
        return uuid.UUID(value)
    except ValueError:
        raise http_error(400, "invalid_id", f"Invalid {label} ID format")


def not_found(label: str) -> HTTPException:
    return http_error(404, "not_found", f"{label.capitalize()} not found")


def internal_error() -> HTTPException:
    return http_error(500, "internal_error", "Internal server error")
