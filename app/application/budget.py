"""
Budget analysis: monthly income split by category budget percentages vs.
actual paid spending.

Actual spending of a category = paid, non-skipped occurrences of the month
for its active, non-deleted expenses, at the occurrence amount (falls back
to the expense estimate). Arithmetic lives in app.domain.budget.
"""
from collections import defaultdict
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from app.application.categories import get_owned_category
from app.application.salary import get_salary
from app.domain.budget import analyze_category, allocate
from app.infrastructure.db.models import CategoryModel, ExpenseModel, ExpenseOccurrence


def _paid_spending_by_category(
    db: Session, user_id: int, year: int, month: int, category_id: int | None = None,
) -> Dict[int, List[Tuple[str, float]]]:
    """category_id -> [(frequency, amount)] for paid, non-skipped occurrences of the month"""
    query = (
        db.query(
            ExpenseModel.category_id,
            ExpenseModel.frequency,
            ExpenseModel.estimated_amount,
            ExpenseOccurrence.amount,
        )
        .join(ExpenseOccurrence, ExpenseOccurrence.expense_id == ExpenseModel.id)
        .filter(
            ExpenseModel.user_id == user_id,
            ExpenseModel.deleted_at.is_(None),
            ExpenseModel.active == True,
            ExpenseOccurrence.year == year,
            ExpenseOccurrence.month == month,
            ExpenseOccurrence.is_paid == True,
            ExpenseOccurrence.is_skipped == False,
        )
    )
    if category_id is not None:
        query = query.filter(ExpenseModel.category_id == category_id)

    spending: Dict[int, List[Tuple[str, float]]] = defaultdict(list)
    for cat_id, frequency, estimated, actual in query.all():
        amount = actual if actual else estimated
        spending[cat_id].append((frequency, float(amount)))
    return spending


def get_budget_analysis(db: Session, user_id: int, year: int, month: int) -> Dict[str, Any]:
    """
    Per-category budget usage for a month.

    No salary (or zero) -> zero-state result without categories.
    """
    monthly_income = get_salary(db, user_id, year, month) or 0.0

    if monthly_income == 0:
        return {
            "year": year,
            "month": month,
            "monthly_income": 0.0,
            "categories": [],
            "categories_with_budget": [],
            "total_budget_percentage": 0.0,
            "has_unassigned_income": False,
            "unassigned_amount": 0.0,
            "total_savings": 0.0,
        }

    categories = db.query(CategoryModel).filter(
        CategoryModel.user_id == user_id
    ).order_by(CategoryModel.name.asc()).all()
    spending = _paid_spending_by_category(db, user_id, year, month)

    analysis = [
        analyze_category(
            category_id=c.id,
            name=c.name,
            budget_percentage=float(c.budget_percentage) if c.budget_percentage is not None else None,
            monthly_income=monthly_income,
            spending=spending.get(c.id, []),
        )
        for c in categories
    ]
    allocation = allocate(monthly_income, analysis)
    category_dicts = [c.to_dict() for c in analysis]

    return {
        "year": year,
        "month": month,
        "monthly_income": monthly_income,
        "categories": category_dicts,
        "categories_with_budget": [c for c in category_dicts if c["budget_percentage"] > 0],
        "total_budget_percentage": allocation.total_budget_percentage,
        "has_unassigned_income": allocation.has_unassigned_income,
        "unassigned_amount": allocation.unassigned_amount,
        "total_savings": allocation.total_savings,
    }


def get_category_budget_status(
    db: Session, user_id: int, category_id: int, year: int, month: int,
) -> Dict[str, Any]:
    """
    Budget status of a single category.

    Raises:
        NotFoundError: category absent or not owned
    """
    category = get_owned_category(db, user_id, category_id)
    monthly_income = get_salary(db, user_id, year, month) or 0.0
    spending = _paid_spending_by_category(db, user_id, year, month, category_id=category_id)

    cb = analyze_category(
        category_id=category.id,
        name=category.name,
        budget_percentage=float(category.budget_percentage) if category.budget_percentage is not None else None,
        monthly_income=monthly_income,
        spending=spending.get(category.id, []),
    )
    return {
        "category_id": cb.id,
        "category_name": cb.name,
        "budget_percentage": cb.budget_percentage,
        "budget_amount": cb.budget_amount,
        "actual_spent": cb.actual_spent,
        "remaining": cb.remaining,
        "usage_percentage": cb.usage_percentage,
        "is_over_budget": cb.is_over_budget,
        "monthly_income": monthly_income,
    }
