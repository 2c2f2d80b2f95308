import pytest
from fastapi import status, HTTPException
from pydantic import ValidationError
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import patch

from budget_pacer.app.schemas.budgets import Budget, BudgetCreate, BudgetStatus, BudgetUpdate
from budget_pacer.app.services.budget_service import (
    create_monthly_budget,
    get_budget_period,
    get_today_allocation,
    refresh_budget_allocation,
    summarize_budget,
    update_monthly_budget
)
from budget_pacer.app.services.period_utils import InvalidDateError


# Service layer tests
def test_create_monthly_budget(engine, make_expense):
    """Test creating a budget for the month of a given day"""
    expenses = [make_expense(45, date(2024, 1, 1)), make_expense(60, date(2023, 12, 31))]

    budget = create_monthly_budget(
        BudgetCreate(monthly_amount=Decimal("1500"), month_of=date(2024, 1, 17)), expenses, engine
    )

    assert budget.id is not None
    assert budget.start_date == date(2024, 1, 1)
    assert budget.end_date == date(2024, 1, 31)
    assert budget.monthly_amount == Decimal("1500")
    assert len(budget.daily_allocation) == 31
    assert budget.daily_allocation[0].spent_amount == Decimal("45")
    assert budget.created_at == budget.updated_at


def test_create_budget_with_invalid_amount(engine):
    """Test that a non-positive monthly amount is rejected with the issue list"""
    with pytest.raises(HTTPException) as excinfo:
        create_monthly_budget(BudgetCreate(monthly_amount=Decimal("0"), month_of=date(2024, 1, 1)), [], engine)

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail[0]["field"] == "monthly_amount"
    assert excinfo.value.detail[0]["code"] == "MIN_VALUE"


def test_refresh_budget_allocation(engine, january_budget_record, make_expense):
    """Test regenerating the table after an expense was added"""
    refreshed = refresh_budget_allocation(january_budget_record, [make_expense(45, date(2024, 1, 1))], engine)

    assert refreshed.id == january_budget_record.id
    assert len(refreshed.daily_allocation) == 31
    assert refreshed.daily_allocation[0].spent_amount == Decimal("45")
    assert refreshed.updated_at > january_budget_record.updated_at
    # The original snapshot is left alone
    assert january_budget_record.daily_allocation == []


def test_update_monthly_budget(engine, january_budget_record, make_expense):
    """Test raising the monthly amount on Jan 6 after spending 320"""
    expenses = [make_expense(amount, date(2024, 1, day)) for day, amount in
                [(1, 45), (2, 25), (3, 120), (4, 80), (5, 50)]]
    budget = refresh_budget_allocation(january_budget_record, expenses, engine)

    updated = update_monthly_budget(
        budget, BudgetUpdate(monthly_amount=Decimal("2000"), as_of_date=date(2024, 1, 6)), expenses, engine
    )

    assert updated.monthly_amount == Decimal("2000")
    assert len(updated.daily_allocation) == 31
    assert updated.daily_allocation[:5] == budget.daily_allocation[:5]
    assert updated.daily_allocation[5].date == date(2024, 1, 6)
    assert updated.daily_allocation[5].base_amount == Decimal("1680") / 26
    assert updated.daily_allocation[5].carry_over_amount == 0


def test_update_budget_without_table_generates_head(engine, january_budget_record):
    updated = update_monthly_budget(
        january_budget_record, BudgetUpdate(monthly_amount=Decimal("3100"), as_of_date=date(2024, 1, 11)), [], engine
    )
    assert len(updated.daily_allocation) == 31
    assert updated.daily_allocation[0].base_amount == Decimal("1500") / 31
    assert updated.daily_allocation[10].base_amount == Decimal("3100") / 21


@patch("budget_pacer.app.services.budget_service.today_utc")
def test_update_budget_defaults_to_today(mock_today, engine, january_budget_record):
    """Test that the as-of date falls back to today"""
    mock_today.return_value = date(2024, 1, 21)

    updated = update_monthly_budget(january_budget_record, BudgetUpdate(monthly_amount=Decimal("1100")), [], engine)

    assert updated.daily_allocation[19].base_amount == Decimal("1500") / 31
    assert updated.daily_allocation[20].date == date(2024, 1, 21)
    assert updated.daily_allocation[20].base_amount == Decimal("100")


def test_update_budget_before_period_uses_period_start(engine, january_budget_record):
    updated = update_monthly_budget(
        january_budget_record, BudgetUpdate(monthly_amount=Decimal("3100"), as_of_date=date(2023, 12, 20)), [], engine
    )
    assert updated.daily_allocation[0].date == date(2024, 1, 1)
    assert updated.daily_allocation[0].base_amount == Decimal("100")


def test_update_budget_with_invalid_amount(engine, january_budget_record):
    with pytest.raises(HTTPException) as excinfo:
        update_monthly_budget(january_budget_record, BudgetUpdate(monthly_amount=Decimal("-5")), [], engine)
    assert excinfo.value.status_code == 400


def test_summarize_active_budget(engine, january_budget_record, make_expense):
    expenses = [make_expense(200, date(2024, 1, 2)), make_expense(100, date(2024, 1, 3)),
                make_expense(500, date(2024, 2, 1))]

    summary = summarize_budget(january_budget_record, expenses, engine, today=date(2024, 1, 10))

    assert summary.total_budget == Decimal("1500")
    assert summary.total_spent == Decimal("300")
    assert summary.remaining_budget == Decimal("1200")
    assert summary.daily_average == Decimal("1500") / 31
    assert summary.days_remaining == 22
    assert summary.is_over_budget is False
    assert summary.status == BudgetStatus.ACTIVE


def test_summarize_exceeded_budget(engine, january_budget_record, make_expense):
    summary = summarize_budget(january_budget_record, [make_expense(1600, date(2024, 1, 2))], engine,
                               today=date(2024, 1, 10))
    assert summary.is_over_budget is True
    assert summary.remaining_budget == Decimal("-100")
    assert summary.status == BudgetStatus.EXCEEDED


def test_summarize_completed_budget(engine, january_budget_record, make_expense):
    summary = summarize_budget(january_budget_record, [make_expense(1600, date(2024, 1, 2))], engine,
                               today=date(2024, 2, 1))
    assert summary.days_remaining == 0
    assert summary.status == BudgetStatus.COMPLETED


def test_get_today_allocation(engine, january_budget_record, make_expense):
    expenses = [make_expense(500, date(2024, 1, 1))]

    result = get_today_allocation(january_budget_record, expenses, engine, today=date(2024, 1, 3))

    assert result.allocation.date == date(2024, 1, 3)
    assert result.allocation.available_amount < 0
    assert result.spendable_amount == Decimal("0.00")


def test_get_today_allocation_outside_period(engine, january_budget_record):
    with pytest.raises(HTTPException) as excinfo:
        get_today_allocation(january_budget_record, [], engine, today=date(2024, 3, 1))
    assert excinfo.value.status_code == 404


def test_get_budget_period():
    period = get_budget_period("2024-02-10")
    assert period.start_date == date(2024, 2, 1)
    assert period.end_date == date(2024, 2, 29)
    assert period.days == 29


def test_get_budget_period_with_bad_date():
    with pytest.raises(InvalidDateError):
        get_budget_period("February")


# API layer tests
def test_create_budget_api(client):
    """Test budget creation through the API"""
    response = client.post(
        "/api/v1/budgets/",
        json={
            "budget": {"monthly_amount": 1500, "month_of": "2024-01-17"},
            "expenses": [{"amount": 45, "date": "2024-01-01", "description": "Lunch"}]
        }
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["start_date"] == "2024-01-01"
    assert data["end_date"] == "2024-01-31"
    assert len(data["daily_allocation"]) == 31
    assert Decimal(data["daily_allocation"][1]["carry_over_amount"]) == Decimal("1500") / 31 - 45


def test_create_budget_api_invalid_amount(client):
    response = client.post(
        "/api/v1/budgets/",
        json={"budget": {"monthly_amount": -1, "month_of": "2024-01-17"}}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"][0]["code"] == "MIN_VALUE"


def test_update_budget_api(client, january_budget_record):
    response = client.post(
        "/api/v1/budgets/update",
        json={
            "budget": january_budget_record.model_dump(mode="json"),
            "update": {"monthly_amount": 2000, "as_of_date": "2024-01-06"},
            "expenses": [{"amount": 320, "date": "2024-01-03"}]
        }
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert Decimal(data["monthly_amount"]) == Decimal("2000")
    assert len(data["daily_allocation"]) == 31
    assert Decimal(data["daily_allocation"][5]["base_amount"]) == Decimal("1680") / 26


def test_summary_api(client, january_budget_record):
    response = client.post(
        "/api/v1/budgets/summary",
        json={
            "budget": january_budget_record.model_dump(mode="json"),
            "expenses": [{"amount": 100, "date": "2024-01-05T12:00:00Z"}],
            "today": "2024-01-05"
        }
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert Decimal(data["total_spent"]) == Decimal("100")
    assert data["days_remaining"] == 27
    assert data["status"] == "active"


def test_today_api(client, january_budget_record):
    response = client.post(
        "/api/v1/budgets/today",
        json={
            "budget": january_budget_record.model_dump(mode="json"),
            "expenses": [],
            "today": "2024-01-01"
        }
    )

    assert response.status_code == status.HTTP_200_OK
    assert Decimal(response.json()["spendable_amount"]) == Decimal("48.39")


def test_period_api(client):
    response = client.get("/api/v1/budgets/period", params={"month_of": "2023-02-14"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"start_date": "2023-02-01", "end_date": "2023-02-28", "days": 28}


def test_period_api_with_bad_date(client):
    """Malformed dates surface as 422 instead of defaulting to today"""
    response = client.get("/api/v1/budgets/period", params={"month_of": "someday"})
    assert response.status_code == 422
    assert "someday" in response.json()["detail"]


def test_budget_rejects_reversed_period():
    with pytest.raises(ValidationError):
        Budget(
            id="b-1",
            monthly_amount=Decimal("1500"),
            start_date=date(2024, 1, 31),
            end_date=date(2024, 1, 1),
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc)
        )


@pytest.mark.parametrize("endpoint", ["/summary", "/today", "/refresh"])
def test_snapshot_api_rejects_reversed_period(client, january_budget_record, endpoint):
    """A reversed budget period fails request validation instead of dividing by zero"""
    budget = january_budget_record.model_dump(mode="json")
    budget["start_date"], budget["end_date"] = budget["end_date"], budget["start_date"]

    response = client.post(
        f"/api/v1/budgets{endpoint}",
        json={"budget": budget, "expenses": [], "today": "2024-01-05"}
    )
    assert response.status_code == 422


def test_snapshot_api_rejects_numeric_today(client, january_budget_record):
    response = client.post(
        "/api/v1/budgets/summary",
        json={"budget": january_budget_record.model_dump(mode="json"), "expenses": [], "today": 0}
    )
    assert response.status_code == 422


def test_create_budget_api_rejects_numeric_month(client):
    response = client.post(
        "/api/v1/budgets/",
        json={"budget": {"monthly_amount": 1500, "month_of": 1705449600}}
    )
    assert response.status_code == 422


def test_update_budget_api_rejects_numeric_as_of(client, january_budget_record):
    response = client.post(
        "/api/v1/budgets/update",
        json={
            "budget": january_budget_record.model_dump(mode="json"),
            "update": {"monthly_amount": 2000, "as_of_date": 0},
            "expenses": []
        }
    )
    assert response.status_code == 422
