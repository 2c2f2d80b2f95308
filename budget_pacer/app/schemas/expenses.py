from pydantic import BaseModel, BeforeValidator, Field
from typing import Annotated, Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from budget_pacer.app.services.period_utils import parse_calendar_date

# Every date field read from a request goes through the same parser.
# Time of day is not significant, so timestamps collapse to their UTC day here
CalendarDate = Annotated[date, BeforeValidator(parse_calendar_date)]

class Expense(BaseModel):
    """Read-only snapshot of an expense owned by the storage layer"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    amount: Decimal
    category_id: str = "uncategorized"
    description: str = ""
    date: CalendarDate
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True
