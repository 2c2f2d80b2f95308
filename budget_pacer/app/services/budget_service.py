import logging
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Optional, Sequence
from uuid import uuid4

from fastapi import HTTPException

from budget_pacer.app.config import get_settings
from budget_pacer.app.schemas.allocations import BudgetPeriodInput, ValidationResult
from budget_pacer.app.schemas.budgets import (
    Budget, BudgetCreate, BudgetPeriod, BudgetStatus, BudgetSummary, BudgetUpdate, TodayAllocation
)
from budget_pacer.app.schemas.expenses import Expense
from budget_pacer.app.services.allocation_engine import BudgetAllocationEngine, to_decimal
from budget_pacer.app.services.period_utils import (
    days_in_period, month_bounds, parse_calendar_date, remaining_days, today_utc
)

logger = logging.getLogger(__name__)

@lru_cache()
def get_allocation_engine() -> BudgetAllocationEngine:
    """Engine configured from settings; injected into routes with Depends"""
    settings = get_settings()
    return BudgetAllocationEngine(
        display_places=settings.display_places,
        max_monthly_amount=settings.max_monthly_amount,
        max_expense_amount=settings.max_expense_amount,
    )

def _reject_if_invalid(result: ValidationResult, action: str) -> None:
    if result.is_valid:
        return
    logger.warning("Rejected %s: %s", action, "; ".join(result.messages))
    raise HTTPException(
        status_code=400,
        detail=[issue.model_dump(mode="json") for issue in result.errors],
    )

def _now() -> datetime:
    return datetime.now(timezone.utc)

def get_budget_period(month_of: str) -> BudgetPeriod:
    """Period bounds for the month containing a raw date string"""
    start, end = month_bounds(parse_calendar_date(month_of))
    return BudgetPeriod(start_date=start, end_date=end, days=days_in_period(start, end))

def create_monthly_budget(
    data: BudgetCreate,
    expenses: Sequence[Expense],
    engine: BudgetAllocationEngine,
) -> Budget:
    """Create a budget covering the whole calendar month of ``data.month_of``"""
    start, end = month_bounds(data.month_of)
    candidate = BudgetPeriodInput(monthly_amount=data.monthly_amount, start_date=start, end_date=end)

    # Expenses from other months are ignored here, only the budget itself is checked
    _reject_if_invalid(engine.validate(candidate, []), "budget creation")

    now = _now()
    budget = Budget(
        id=str(uuid4()),
        monthly_amount=data.monthly_amount,
        start_date=start,
        end_date=end,
        daily_allocation=engine.build_allocation_table(candidate, expenses),
        created_at=now,
        updated_at=now,
    )
    logger.info("Created budget %s for %s to %s", budget.id, start, end)
    return budget

def refresh_budget_allocation(
    budget: Budget,
    expenses: Sequence[Expense],
    engine: BudgetAllocationEngine,
) -> Budget:
    """Regenerate the whole table after expenses changed"""
    return budget.model_copy(update={
        "daily_allocation": engine.build_allocation_table(budget, expenses),
        "updated_at": _now(),
    })

def update_monthly_budget(
    budget: Budget,
    update: BudgetUpdate,
    expenses: Sequence[Expense],
    engine: BudgetAllocationEngine,
) -> Budget:
    """
    Change the monthly amount mid-period.

    Days before the as-of date keep their existing allocations; the rest of
    the period is reallocated from what remains of the new amount.
    """
    candidate = BudgetPeriodInput(
        monthly_amount=update.monthly_amount,
        start_date=budget.start_date,
        end_date=budget.end_date,
    )
    _reject_if_invalid(engine.validate(candidate, []), "budget update")

    as_of = max(update.as_of_date or today_utc(), budget.start_date)
    if as_of > budget.end_date:
        logger.warning("Budget %s updated after its period ended; allocations left unchanged", budget.id)

    head = budget.daily_allocation or engine.build_allocation_table(budget, expenses)
    tail = engine.reallocate(update.monthly_amount, as_of, budget, expenses)

    return budget.model_copy(update={
        "monthly_amount": update.monthly_amount,
        "daily_allocation": engine.splice_allocations(head, tail),
        "updated_at": _now(),
    })

def summarize_budget(
    budget: Budget,
    expenses: Sequence[Expense],
    engine: BudgetAllocationEngine,
    today: Optional[date] = None,
) -> BudgetSummary:
    """Totals and status for a budget as of ``today``"""
    today = today or today_utc()
    monthly_amount = to_decimal(budget.monthly_amount)
    total_spent = engine.total_spent(expenses, budget.start_date, budget.end_date)
    is_over_budget = total_spent > monthly_amount

    if today > budget.end_date:
        status = BudgetStatus.COMPLETED
    elif is_over_budget:
        status = BudgetStatus.EXCEEDED
    else:
        status = BudgetStatus.ACTIVE

    return BudgetSummary(
        budget_id=budget.id,
        total_budget=monthly_amount,
        total_spent=total_spent,
        remaining_budget=monthly_amount - total_spent,
        daily_average=engine.daily_base(budget),
        days_remaining=remaining_days(today, budget.end_date),
        is_over_budget=is_over_budget,
        status=status,
    )

def get_today_allocation(
    budget: Budget,
    expenses: Sequence[Expense],
    engine: BudgetAllocationEngine,
    today: Optional[date] = None,
) -> TodayAllocation:
    """Allocation for ``today`` plus the amount that can still be spent"""
    today = today or today_utc()
    allocation = engine.allocation_for_day(today, budget, expenses)
    if allocation is None:
        raise HTTPException(
            status_code=404,
            detail=f"{today.isoformat()} is outside budget period {budget.start_date} to {budget.end_date}",
        )
    return TodayAllocation(allocation=allocation, spendable_amount=engine.spendable_amount(allocation))
