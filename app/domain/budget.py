"""
Budget arithmetic: per-category budget usage and income allocation.

All amounts are floats (stored decimals are coerced before calling in);
rounding to 2 decimals happens only at display time.
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Tuple

from app.domain.expense import FREQUENCY_ONE_TIME


@dataclass
class CategoryBudget:
    id: int
    name: str
    budget_percentage: float
    budget_amount: float
    actual_spent: float = 0.0
    one_time_spent: float = 0.0
    one_time_count: int = 0
    recurring_spent: float = 0.0
    remaining: float = 0.0
    usage_percentage: float = 0.0
    is_over_budget: bool = False
    expense_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BudgetAllocation:
    total_budget_percentage: float
    has_unassigned_income: bool
    unassigned_amount: float
    total_savings: float
    categories: List[CategoryBudget] = field(default_factory=list)


def budget_amount(monthly_income: float, budget_percentage: float | None) -> float:
    return monthly_income * (budget_percentage or 0) / 100


def analyze_category(
    category_id: int,
    name: str,
    budget_percentage: float | None,
    monthly_income: float,
    spending: Iterable[Tuple[str, float]],
) -> CategoryBudget:
    """
    Compute usage for one category.

    Args:
        spending: (frequency, amount) per paid, non-skipped expense of the month;
            amount is the occurrence's actual amount or the expense estimate.
    """
    pct = float(budget_percentage or 0)
    cb = CategoryBudget(
        id=category_id,
        name=name,
        budget_percentage=pct,
        budget_amount=budget_amount(monthly_income, pct),
    )
    for frequency, amount in spending:
        cb.actual_spent += amount
        cb.expense_count += 1
        if frequency == FREQUENCY_ONE_TIME:
            cb.one_time_spent += amount
            cb.one_time_count += 1

    cb.recurring_spent = cb.actual_spent - cb.one_time_spent
    cb.remaining = cb.budget_amount - cb.actual_spent
    cb.usage_percentage = (cb.actual_spent / cb.budget_amount) * 100 if cb.budget_amount > 0 else 0.0
    cb.is_over_budget = cb.actual_spent > cb.budget_amount
    return cb


def allocate(monthly_income: float, categories: List[CategoryBudget]) -> BudgetAllocation:
    """
    Income allocation over all categories.

    Savings only count positive remainders: overspend in one category never
    offsets surplus in another.
    """
    total_pct = sum(c.budget_percentage for c in categories)
    has_unassigned = total_pct < 100
    unassigned = monthly_income * (100 - total_pct) / 100 if has_unassigned else 0.0
    total_savings = sum(max(0.0, c.remaining) for c in categories)
    return BudgetAllocation(
        total_budget_percentage=total_pct,
        has_unassigned_income=has_unassigned,
        unassigned_amount=unassigned,
        total_savings=total_savings,
        categories=categories,
    )


def savings_rate(income: float, spent: float) -> float:
    """(income - spent) / income * 100, 0 when there is no income."""
    if not income:
        return 0.0
    return (income - spent) / income * 100
