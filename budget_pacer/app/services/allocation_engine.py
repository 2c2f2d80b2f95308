"""
Dynamic daily budget allocation.

A monthly amount is spread evenly over the days of its period. Whatever a day
does not spend is banked for the following days, and whatever it overspends is
borrowed from them, so the available amount for a day is its base plus the
signed running total of (base - spent) for every earlier day in the table.

Debt is never floored inside the ledger. Only the display figure returned by
``spendable_amount`` stops at zero.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Sequence

from budget_pacer.app.schemas.allocations import (
    DailyAllocation, ValidationCode, ValidationIssue, ValidationResult
)
from budget_pacer.app.services.period_utils import (
    InvalidDateError, day_key, days_before, days_in_period, iter_days,
    parse_calendar_date, remaining_days
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert a trusted numeric value to Decimal without float noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class BudgetAllocationEngine:
    """
    Stateless allocation strategy.

    Budgets are any objects exposing ``monthly_amount``, ``start_date`` and
    ``end_date``; expenses expose ``amount`` and ``date``. Inputs are read
    once per call and never mutated.
    """
    display_places: int = 2
    max_monthly_amount: Optional[Decimal] = None
    max_expense_amount: Optional[Decimal] = None

    # --- Building blocks ---

    def daily_base(self, budget) -> Decimal:
        """Monthly amount divided evenly over every day of the budget period"""
        total_days = days_in_period(budget.start_date, budget.end_date)
        return to_decimal(budget.monthly_amount) / total_days

    def spent_by_day(self, expenses: Iterable) -> Dict[date, Decimal]:
        totals: Dict[date, Decimal] = defaultdict(lambda: ZERO)
        for expense in expenses:
            totals[day_key(expense.date)] += to_decimal(expense.amount)
        return dict(totals)

    def total_spent(self, expenses: Iterable, start: date, end: date) -> Decimal:
        """Sum of expenses whose day falls in [start, end]"""
        return sum(
            (amount for day, amount in self.spent_by_day(expenses).items() if start <= day <= end),
            ZERO,
        )

    def carry_over(self, target: date, period_start: date, daily_base: Decimal, expenses: Iterable) -> Decimal:
        """Signed sum of (daily_base - spent) over the days in [period_start, target)"""
        spent = self.spent_by_day(expenses)
        daily_base = to_decimal(daily_base)
        return sum(
            (daily_base - spent.get(day, ZERO) for day in days_before(target, period_start)),
            ZERO,
        )

    # --- Allocation tables ---

    def generate_allocations(
        self,
        start: date,
        end: date,
        daily_base: Decimal,
        expenses: Iterable,
    ) -> List[DailyAllocation]:
        """
        Build one allocation per calendar day in [start, end].

        Carry-over accumulates from ``start``, so the first row always carries
        zero. Expenses dated outside the range are simply never looked up.
        """
        daily_base = to_decimal(daily_base)
        spent = self.spent_by_day(expenses)

        allocations: List[DailyAllocation] = []
        carry = ZERO
        for day in iter_days(start, end):
            day_spent = spent.get(day, ZERO)
            available = daily_base + carry
            allocations.append(DailyAllocation(
                date=day,
                base_amount=daily_base,
                carry_over_amount=carry,
                available_amount=available,
                spent_amount=day_spent,
                remaining_amount=available - day_spent,
            ))
            carry += daily_base - day_spent

        logger.debug("Generated %d allocations from %s to %s", len(allocations), start, end)
        return allocations

    def build_allocation_table(self, budget, expenses: Iterable) -> List[DailyAllocation]:
        """Full-period table at the budget's own daily base"""
        return self.generate_allocations(
            budget.start_date, budget.end_date, self.daily_base(budget), expenses
        )

    def allocation_for_day(self, target: date, budget, expenses: Sequence) -> Optional[DailyAllocation]:
        """The allocation a full-period table would hold for ``target``"""
        if not budget.start_date <= target <= budget.end_date:
            return None

        daily_base = self.daily_base(budget)
        carry = self.carry_over(target, budget.start_date, daily_base, expenses)
        spent = self.spent_by_day(expenses).get(target, ZERO)
        available = daily_base + carry
        return DailyAllocation(
            date=target,
            base_amount=daily_base,
            carry_over_amount=carry,
            available_amount=available,
            spent_amount=spent,
            remaining_amount=available - spent,
        )

    def spendable_amount(self, allocation: DailyAllocation) -> Decimal:
        """What is left to spend on the allocation's day, floored at zero for display"""
        quantum = Decimal(1).scaleb(-self.display_places)
        return max(ZERO, allocation.remaining_amount).quantize(quantum, rounding=ROUND_HALF_UP)

    # --- Reallocation ---

    def reallocate(
        self,
        new_monthly_amount: Decimal,
        as_of: date,
        budget,
        expenses: Sequence,
    ) -> List[DailyAllocation]:
        """
        Spread what is left of a new monthly amount over the rest of the period.

        Only the tail from ``as_of`` to the period end is returned. With no days
        left the new base is zero and the tail is empty.
        """
        spent_so_far = self.total_spent(expenses, budget.start_date, as_of)
        remaining = to_decimal(new_monthly_amount) - spent_so_far
        days_left = remaining_days(as_of, budget.end_date)
        new_base = remaining / days_left if days_left > 0 else ZERO

        logger.info(
            "Reallocating %s as of %s: spent %s, %d days left, new daily base %s",
            new_monthly_amount, as_of, spent_so_far, days_left, new_base,
        )
        return self.generate_allocations(as_of, budget.end_date, new_base, expenses)

    @staticmethod
    def splice_allocations(
        head: Sequence[DailyAllocation],
        tail: Sequence[DailyAllocation],
    ) -> List[DailyAllocation]:
        """Keep the head rows dated before the tail starts, then append the tail"""
        if not tail:
            return list(head)
        cutoff = tail[0].date
        return [allocation for allocation in head if allocation.date < cutoff] + list(tail)

    # --- Validation ---

    def validate(self, budget, expenses: Sequence) -> ValidationResult:
        """
        Collect every problem with a budget and its expenses.

        Nothing short-circuits: a bad budget amount does not hide bad dates,
        and every offending expense gets its own issue.
        """
        errors: List[ValidationIssue] = []

        errors.extend(self._check_amount(
            "monthly_amount", getattr(budget, "monthly_amount", None),
            "Monthly amount", self.max_monthly_amount,
        ))

        start = self._check_date("start_date", getattr(budget, "start_date", None), "Start date", errors)
        end = self._check_date("end_date", getattr(budget, "end_date", None), "End date", errors)
        period_known = start is not None and end is not None
        if period_known and start >= end:
            errors.append(ValidationIssue(
                field="end_date",
                code=ValidationCode.DATE_RANGE,
                message="Start date must be earlier than end date",
            ))
            period_known = False

        for index, expense in enumerate(expenses):
            reference = getattr(expense, "id", None)
            field = f"expenses[{index}]"

            expense_day = self._check_date(
                f"{field}.date", getattr(expense, "date", None), "Expense date", errors, reference
            )
            if expense_day is not None and period_known:
                if not start <= expense_day <= end:
                    errors.append(ValidationIssue(
                        field=f"{field}.date",
                        code=ValidationCode.OUT_OF_RANGE,
                        message=f"Expense date {expense_day.isoformat()} is outside the budget period",
                        reference=reference,
                    ))

            errors.extend(self._check_amount(
                f"{field}.amount", getattr(expense, "amount", None),
                "Expense amount", self.max_expense_amount, reference,
            ))

        return ValidationResult(is_valid=not errors, errors=errors)

    @staticmethod
    def _check_date(field: str, value, label: str, errors: List[ValidationIssue],
                    reference: Optional[str] = None) -> Optional[date]:
        if value is None:
            errors.append(ValidationIssue(
                field=field, code=ValidationCode.REQUIRED,
                message=f"{label} is required", reference=reference,
            ))
            return None
        try:
            return parse_calendar_date(value)
        except InvalidDateError:
            errors.append(ValidationIssue(
                field=field, code=ValidationCode.INVALID_DATE,
                message=f"{label} {value!r} is not a valid date", reference=reference,
            ))
            return None

    @staticmethod
    def _check_amount(field: str, value, label: str, maximum: Optional[Decimal],
                      reference: Optional[str] = None) -> List[ValidationIssue]:
        if value is None:
            return [ValidationIssue(
                field=field, code=ValidationCode.REQUIRED,
                message=f"{label} is required", reference=reference,
            )]
        try:
            amount = to_decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            amount = None
        if amount is None or not amount.is_finite():
            return [ValidationIssue(
                field=field, code=ValidationCode.INVALID_NUMBER,
                message=f"{label} must be a number", reference=reference,
            )]
        if amount <= 0:
            return [ValidationIssue(
                field=field, code=ValidationCode.MIN_VALUE,
                message=f"{label} must be greater than 0", reference=reference,
            )]
        if maximum is not None and amount > maximum:
            return [ValidationIssue(
                field=field, code=ValidationCode.MAX_VALUE,
                message=f"{label} must not exceed {maximum}", reference=reference,
            )]
        return []
