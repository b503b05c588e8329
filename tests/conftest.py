"""Pytest fixtures for testing"""

from typing import Generator, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from debtplan_gateway.api.main import create_app
from debtplan_gateway.domain.models import DebtCategory, DebtRecord, IncomeProfile
from debtplan_gateway.infrastructure.database.models import Base
from debtplan_gateway.infrastructure.database.session import build_engine, get_db, init_db

# Test database
TEST_DATABASE_URL = "sqlite:///./debtplan_test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    init_db(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


def _make_debt(
    debt_id: str,
    balance: float,
    rate: float,
    minimum: float,
    category: DebtCategory = DebtCategory.CREDIT_CARD,
    is_active: bool = True,
) -> DebtRecord:
    return DebtRecord(
        id=debt_id,
        name=f"Debt {debt_id}",
        category=category,
        original_amount=balance,
        remaining_balance=balance,
        interest_rate=rate,
        minimum_payment=minimum,
        due_day=15,
        is_active=is_active,
    )


@pytest.fixture
def two_debts() -> List[DebtRecord]:
    """Debt A 10,000 @ 20% (min 500) and Debt B 5,000 @ 10% (min 300)"""
    return [
        _make_debt("A", 10_000, 20.0, 500),
        _make_debt("B", 5_000, 10.0, 300, category=DebtCategory.PERSONAL),
    ]


@pytest.fixture
def income() -> IncomeProfile:
    return IncomeProfile(net_monthly_income=40_000, monthly_expense=15_000, gross_monthly_income=50_000)
