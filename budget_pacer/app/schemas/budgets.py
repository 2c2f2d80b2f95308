from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field, model_validator

from budget_pacer.app.schemas.allocations import DailyAllocation
from budget_pacer.app.schemas.expenses import CalendarDate, Expense

class BudgetStatus(str, Enum):
    ACTIVE = "active"
    EXCEEDED = "exceeded"
    COMPLETED = "completed"

class BudgetBase(BaseModel):
    monthly_amount: Decimal
    start_date: CalendarDate
    end_date: CalendarDate

    @model_validator(mode="after")
    def check_period_order(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class Budget(BudgetBase):
    id: str
    daily_allocation: List[DailyAllocation] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class BudgetCreate(BaseModel):
    monthly_amount: Decimal
    month_of: CalendarDate  # any day inside the month being budgeted

class BudgetUpdate(BaseModel):
    monthly_amount: Decimal
    as_of_date: Optional[CalendarDate] = None  # defaults to today (UTC)

class BudgetPeriod(BaseModel):
    start_date: date
    end_date: date
    days: int

class BudgetSummary(BaseModel):
    budget_id: str
    total_budget: Decimal
    total_spent: Decimal
    remaining_budget: Decimal
    daily_average: Decimal
    days_remaining: int
    is_over_budget: bool
    status: BudgetStatus

class TodayAllocation(BaseModel):
    allocation: DailyAllocation
    spendable_amount: Decimal  # floored at zero for display

# --- Request bodies ---

class BudgetCreateRequest(BaseModel):
    budget: BudgetCreate
    expenses: List[Expense] = Field(default_factory=list)

class BudgetSnapshotRequest(BaseModel):
    budget: Budget
    expenses: List[Expense] = Field(default_factory=list)
    today: Optional[CalendarDate] = None

class BudgetUpdateRequest(BaseModel):
    budget: Budget
    update: BudgetUpdate
    expenses: List[Expense] = Field(default_factory=list)
