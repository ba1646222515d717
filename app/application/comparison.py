"""
Month-range comparison: monthly details + salary + savings rate per period.

Every call recomputes from the database; cost grows linearly with the
number of months in the range.
"""
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.application.monthly import get_monthly_details
from app.application.salary import get_salary
from app.domain.budget import savings_rate
from app.domain.period import month_range


class ComparisonValidationError(ValueError):
    pass


def get_comparison(
    db: Session,
    user_id: int,
    year_from: int,
    month_from: int,
    year_to: int,
    month_to: int,
) -> List[Dict[str, Any]]:
    """Chronological list of periods from (year_from, month_from) to (year_to, month_to) inclusive."""
    if not (1 <= month_from <= 12 and 1 <= month_to <= 12):
        raise ComparisonValidationError("Месяц должен быть от 1 до 12")

    periods = month_range(year_from, month_from, year_to, month_to)
    if not periods:
        raise ComparisonValidationError("Начало периода позже конца")

    result = []
    for y, m in periods:
        data = get_monthly_details(db, user_id, y, m)
        salary = get_salary(db, user_id, y, m) or 0.0
        data["salary"] = salary
        data["savings_rate"] = savings_rate(salary, data["total_actual"])
        result.append(data)
    return result
