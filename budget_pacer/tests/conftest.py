import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from fastapi.testclient import TestClient
from uuid import uuid4

from budget_pacer.app.main import app
from budget_pacer.app.schemas.allocations import BudgetPeriodInput
from budget_pacer.app.schemas.budgets import Budget
from budget_pacer.app.schemas.expenses import Expense
from budget_pacer.app.services.allocation_engine import BudgetAllocationEngine
from budget_pacer.app.services.budget_service import get_allocation_engine

@pytest.fixture
def engine():
    """Engine without upper amount limits"""
    return BudgetAllocationEngine()

@pytest.fixture
def client(engine):
    """Test client that uses the engine fixture"""
    app.dependency_overrides[get_allocation_engine] = lambda: engine
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

@pytest.fixture
def january_budget():
    """1500 over January 2024 (31 days)"""
    return BudgetPeriodInput(
        monthly_amount=Decimal("1500"),
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31)
    )

@pytest.fixture
def january_budget_record(january_budget):
    """The same budget as the storage layer would hand it over"""
    created = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
    return Budget(
        id=str(uuid4()),
        monthly_amount=january_budget.monthly_amount,
        start_date=january_budget.start_date,
        end_date=january_budget.end_date,
        daily_allocation=[],
        created_at=created,
        updated_at=created
    )

@pytest.fixture
def make_expense():
    """Factory for expense snapshots"""
    def _make(amount, day, description="Test expense", category_id="food"):
        return Expense(
            id=str(uuid4()),
            amount=Decimal(str(amount)),
            category_id=category_id,
            description=description,
            date=day
        )
    return _make
