from pydantic import BaseModel, Field, model_validator
from typing import Any, List, Optional
from decimal import Decimal
from enum import Enum

from budget_pacer.app.schemas.expenses import CalendarDate, Expense

class DailyAllocation(BaseModel):
    """
    One day of an allocation table.

    Always produced by the engine and never patched in place; the engine
    regenerates the whole table whenever budget or expenses change.
    """
    date: CalendarDate
    base_amount: Decimal
    carry_over_amount: Decimal  # signed net of earlier days in the table
    available_amount: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal  # may be negative

    class Config:
        from_attributes = True
        frozen = True

class ValidationCode(str, Enum):
    REQUIRED = "REQUIRED"
    INVALID_NUMBER = "INVALID_NUMBER"
    MIN_VALUE = "MIN_VALUE"
    MAX_VALUE = "MAX_VALUE"
    INVALID_DATE = "INVALID_DATE"
    DATE_RANGE = "DATE_RANGE"
    OUT_OF_RANGE = "OUT_OF_RANGE"

class ValidationIssue(BaseModel):
    field: str
    code: ValidationCode
    message: str
    reference: Optional[str] = None  # expense id for expense-level issues

    class Config:
        frozen = True

class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[ValidationIssue] = []

    @property
    def messages(self) -> List[str]:
        return [issue.message for issue in self.errors]

# --- Request bodies ---

class BudgetPeriodInput(BaseModel):
    """Minimal budget snapshot the engine needs"""
    monthly_amount: Decimal
    start_date: CalendarDate
    end_date: CalendarDate

    @model_validator(mode="after")
    def check_period_order(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class UnparsedBudgetInput(BaseModel):
    """Budget fields exactly as received; the engine reports what is wrong with them"""
    monthly_amount: Any = None
    start_date: Any = None
    end_date: Any = None

class UnparsedExpenseInput(BaseModel):
    id: Optional[str] = None
    amount: Any = None
    date: Any = None

class DailyBaseRequest(BaseModel):
    budget: BudgetPeriodInput

class DailyBaseResponse(BaseModel):
    daily_base: Decimal
    days_in_period: int

class GenerateAllocationsRequest(BaseModel):
    start_date: CalendarDate
    end_date: CalendarDate
    daily_base: Decimal
    expenses: List[Expense] = []

class ReallocationRequest(BaseModel):
    new_monthly_amount: Decimal
    as_of_date: CalendarDate
    budget: BudgetPeriodInput
    expenses: List[Expense] = []

class ValidationRequest(BaseModel):
    budget: UnparsedBudgetInput
    expenses: List[UnparsedExpenseInput] = Field(default_factory=list)
