from fastapi import APIRouter, Depends, Query

from budget_pacer.app.schemas.budgets import (
    Budget, BudgetCreateRequest, BudgetPeriod, BudgetSnapshotRequest, BudgetSummary,
    BudgetUpdateRequest, TodayAllocation
)
from budget_pacer.app.services.allocation_engine import BudgetAllocationEngine
from budget_pacer.app.services.budget_service import (
    create_monthly_budget, get_allocation_engine, get_budget_period, get_today_allocation,
    refresh_budget_allocation, summarize_budget, update_monthly_budget
)

router = APIRouter()

@router.get("/period", response_model=BudgetPeriod)
def get_period_endpoint(
    month_of: str = Query(..., description="Any date inside the month (ISO-8601)")
):
    """
    Get the budget period covering a calendar month
    """
    return get_budget_period(month_of)

@router.post("/", response_model=Budget)
def create_budget_endpoint(
    request: BudgetCreateRequest,
    engine: BudgetAllocationEngine = Depends(get_allocation_engine)
):
    """
    Create a monthly budget and generate its daily allocation table.

    - The period is the whole calendar month of `month_of`
    - Expenses outside the month are ignored
    """
    return create_monthly_budget(request.budget, request.expenses, engine)

@router.post("/refresh", response_model=Budget)
def refresh_budget_endpoint(
    request: BudgetSnapshotRequest,
    engine: BudgetAllocationEngine = Depends(get_allocation_engine)
):
    """
    Regenerate a budget's allocation table from the current expenses
    """
    return refresh_budget_allocation(request.budget, request.expenses, engine)

@router.post("/update", response_model=Budget)
def update_budget_endpoint(
    request: BudgetUpdateRequest,
    engine: BudgetAllocationEngine = Depends(get_allocation_engine)
):
    """
    Change the monthly amount and reallocate the rest of the period.

    - Days before `as_of_date` keep their allocations
    - Remaining days share what is left of the new amount
    """
    return update_monthly_budget(request.budget, request.update, request.expenses, engine)

@router.post("/summary", response_model=BudgetSummary)
def budget_summary_endpoint(
    request: BudgetSnapshotRequest,
    engine: BudgetAllocationEngine = Depends(get_allocation_engine)
):
    """
    Get spending totals and status for a budget
    """
    return summarize_budget(request.budget, request.expenses, engine, request.today)

@router.post("/today", response_model=TodayAllocation)
def today_allocation_endpoint(
    request: BudgetSnapshotRequest,
    engine: BudgetAllocationEngine = Depends(get_allocation_engine)
):
    """
    Get the allocation for today (or `today` if given) and what can still be spent
    """
    return get_today_allocation(request.budget, request.expenses, engine, request.today)
