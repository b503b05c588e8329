"""Domain-specific exceptions"""

from typing import Dict


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input fields are malformed or out of range; carries every offending field"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(f"{field}: {message}" for field, message in sorted(self.errors.items()))
        super().__init__(f"Invalid input ({fields})")


class MissingRequiredField(ValidationError):
    """A value needed to derive a default was absent and no heuristic applies"""

    def __init__(self, field: str, reason: str = "required"):
        self.field = field
        super().__init__({field: reason})


class InfeasibleBudget(DomainException):
    """Requested monthly payment is below the sum of minimum payments"""

    def __init__(self, requested: float, required: float):
        self.requested = requested
        self.required = required
        super().__init__(
            f"Monthly payment {requested:.2f} is below the required minimum {required:.2f}"
        )


class PlanDoesNotConverge(DomainException):
    """Simulation hit the month cap with debts still open"""

    def __init__(self, max_months: int):
        self.max_months = max_months
        super().__init__(f"Debts are not paid off within {max_months} months at this payment")


class InsufficientIncomeData(DomainException):
    """Income base is zero or missing, so DTI cannot be assessed"""

    pass


class InsightAPIError(DomainException):
    """AI insight service returned an error or is unavailable"""

    pass
