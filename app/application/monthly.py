"""
Monthly aggregation: expenses with their occurrence for a month and totals.

Only active, non-deleted expenses that have an occurrence row for the month
are listed. Skipped items are listed but excluded from every total.
Amounts are floats; rounding happens at display time only.
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.application.salary import get_salary
from app.domain.period import local_today, month_name
from app.config import get_settings
from app.infrastructure.db.models import (
    ExpenseModel, ExpenseOccurrence, CategoryModel, SubcategoryModel,
)


def _load_month_rows(db: Session, user_id: int, year: int, month: int, extra_filters=()):
    """(expense, occurrence, category_name, subcategory_name) for the month"""
    return (
        db.query(
            ExpenseModel,
            ExpenseOccurrence,
            CategoryModel.name.label("category_name"),
            SubcategoryModel.name.label("subcategory_name"),
        )
        .join(ExpenseOccurrence, ExpenseOccurrence.expense_id == ExpenseModel.id)
        .join(CategoryModel, CategoryModel.id == ExpenseModel.category_id)
        .join(SubcategoryModel, SubcategoryModel.id == ExpenseModel.subcategory_id)
        .filter(
            ExpenseModel.user_id == user_id,
            ExpenseModel.active == True,
            ExpenseModel.deleted_at.is_(None),
            ExpenseOccurrence.year == year,
            ExpenseOccurrence.month == month,
            *extra_filters,
        )
        .order_by(ExpenseModel.name.asc(), ExpenseModel.id.asc())
        .all()
    )


def get_monthly_dashboard(db: Session, user_id: int, year: int, month: int) -> Dict[str, Any]:
    """
    Dashboard for one month.

    total_estimated = sum of estimates of non-skipped items
    total_paid      = sum of estimates of paid non-skipped items
    total_pending   = total_estimated - total_paid
    """
    items = []
    for expense, occ, category_name, subcategory_name in _load_month_rows(db, user_id, year, month):
        items.append({
            "expense_id": expense.id,
            "name": expense.name,
            "category_name": category_name,
            "subcategory_name": subcategory_name,
            "estimated_amount": float(expense.estimated_amount),
            "is_paid": bool(occ.is_paid),
            "is_skipped": bool(occ.is_skipped),
            "paid_at": occ.paid_at,
            "skipped_at": occ.skipped_at,
        })

    active_items = [i for i in items if not i["is_skipped"]]
    total_estimated = sum(i["estimated_amount"] for i in active_items)
    total_paid = sum(i["estimated_amount"] for i in active_items if i["is_paid"])

    return {
        "year": year,
        "month": month,
        "total_estimated": total_estimated,
        "total_paid": total_paid,
        "total_pending": total_estimated - total_paid,
        "items": items,
    }


def get_monthly_details(db: Session, user_id: int, year: int, month: int) -> Dict[str, Any]:
    """
    Detailed month view (charts, comparison, reports).

    total_actual counts paid, non-skipped items at their actual amount
    (falls back to the estimate when no actual amount was recorded).
    category_data groups non-skipped items by category name.
    """
    items = []
    for expense, occ, category_name, subcategory_name in _load_month_rows(db, user_id, year, month):
        items.append({
            "expense_id": expense.id,
            "name": expense.name,
            "category_name": category_name,
            "subcategory_name": subcategory_name,
            "frequency": expense.frequency,
            "estimated_amount": float(expense.estimated_amount),
            "actual_amount": float(occ.amount) if occ.amount is not None else None,
            "is_paid": bool(occ.is_paid),
            "is_skipped": bool(occ.is_skipped),
            "paid_at": occ.paid_at,
            "skipped_at": occ.skipped_at,
            "has_occurrence": True,
        })

    active_items = [i for i in items if not i["is_skipped"]]
    paid_items = [i for i in active_items if i["is_paid"]]

    total_estimated = sum(i["estimated_amount"] for i in active_items)
    total_actual = sum(
        i["actual_amount"] if i["actual_amount"] is not None else i["estimated_amount"]
        for i in paid_items
    )
    total_paid = sum(i["estimated_amount"] for i in paid_items)

    by_category: Dict[str, Dict[str, Any]] = {}
    for item in active_items:
        row = by_category.setdefault(item["category_name"], {
            "category": item["category_name"],
            "estimated": 0.0,
            "actual": 0.0,
            "count": 0,
        })
        row["estimated"] += item["estimated_amount"]
        if item["actual_amount"] is not None:
            row["actual"] += item["actual_amount"]
        elif item["is_paid"]:
            row["actual"] += item["estimated_amount"]
        row["count"] += 1

    return {
        "year": year,
        "month": month,
        "month_name": month_name(year, month),
        "total_estimated": total_estimated,
        "total_actual": total_actual,
        "total_paid": total_paid,
        "total_pending": total_estimated - total_paid,
        "paid_count": len(paid_items),
        "pending_count": len(active_items) - len(paid_items),
        "items": items,
        "category_data": list(by_category.values()),
    }


def get_pending_expenses(db: Session, user_id: int, today: date | None = None) -> List[Dict[str, Any]]:
    """Unpaid, unskipped expenses of the current month with days since the 1st"""
    if today is None:
        today = local_today(get_settings().TIMEZONE)
    rows = _load_month_rows(
        db, user_id, today.year, today.month,
        extra_filters=(
            ExpenseOccurrence.is_paid == False,
            ExpenseOccurrence.is_skipped == False,
        ),
    )
    days_overdue = (today - date(today.year, today.month, 1)).days
    return [
        {
            "id": expense.id,
            "name": expense.name,
            "category_name": category_name,
            "subcategory_name": subcategory_name,
            "estimated_amount": float(expense.estimated_amount),
            "days_overdue": days_overdue,
        }
        for expense, _occ, category_name, subcategory_name in rows
    ]


def get_export_data(db: Session, user_id: int, year: int, month: int) -> Dict[str, Any]:
    """Monthly details + salary, ready for an export formatter"""
    data = get_monthly_details(db, user_id, year, month)
    salary = get_salary(db, user_id, year, month)
    data["salary"] = salary or 0.0
    data["export_date"] = datetime.now(timezone.utc).isoformat()
    return data
