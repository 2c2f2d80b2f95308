from fastapi import APIRouter, Depends
from typing import List

from budget_pacer.app.schemas.allocations import (
    DailyAllocation, DailyBaseRequest, DailyBaseResponse, GenerateAllocationsRequest,
    ReallocationRequest, ValidationRequest, ValidationResult
)
from budget_pacer.app.services.allocation_engine import BudgetAllocationEngine
from budget_pacer.app.services.budget_service import get_allocation_engine
from budget_pacer.app.services.period_utils import days_in_period

router = APIRouter()

@router.post("/daily-base", response_model=DailyBaseResponse)
async def daily_base_endpoint(
    request: DailyBaseRequest,
    engine: BudgetAllocationEngine = Depends(get_allocation_engine)
):
    """
    Get the even daily share of a budget's monthly amount
    """
    budget = request.budget
    return DailyBaseResponse(
        daily_base=engine.daily_base(budget),
        days_in_period=days_in_period(budget.start_date, budget.end_date)
    )

@router.post("/generate", response_model=List[DailyAllocation])
async def generate_allocations_endpoint(
    request: GenerateAllocationsRequest,
    engine: BudgetAllocationEngine = Depends(get_allocation_engine)
):
    """
    Generate the allocation table for a date range.

    - One row per calendar day, ascending
    - Carry-over starts at zero on `start_date`
    - Expenses outside the range are ignored
    """
    return engine.generate_allocations(
        request.start_date, request.end_date, request.daily_base, request.expenses
    )

@router.post("/reallocate", response_model=List[DailyAllocation])
async def reallocate_endpoint(
    request: ReallocationRequest,
    engine: BudgetAllocationEngine = Depends(get_allocation_engine)
):
    """
    Reallocate the rest of a period after the monthly amount changed.

    - Returns only the rows from `as_of_date` to the period end
    - Empty when no days are left
    """
    return engine.reallocate(
        request.new_monthly_amount, request.as_of_date, request.budget, request.expenses
    )

@router.post("/validate", response_model=ValidationResult)
async def validate_endpoint(
    request: ValidationRequest,
    engine: BudgetAllocationEngine = Depends(get_allocation_engine)
):
    """
    Check a budget and its expenses, reporting every problem found
    """
    return engine.validate(request.budget, request.expenses)
