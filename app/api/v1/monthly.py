"""
Monthly views: dashboard, details, pending, export, salary, occurrence
generation and month-range comparison
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.infrastructure.db.models import User
from app.application.comparison import get_comparison
from app.application.monthly import (
    get_monthly_dashboard, get_monthly_details, get_pending_expenses, get_export_data,
)
from app.application.occurrences import OccurrenceGenerator
from app.application.salary import SetSalaryUseCase, get_salary


router = APIRouter(prefix="/api/v1/monthly", tags=["monthly"])


class SalaryRequest(BaseModel):
    amount: float | str


class SalaryResponse(BaseModel):
    year: int
    month: int
    amount: float | None


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Месяц должен быть от 1 до 12")


@router.get("/pending")
def pending_expenses(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Неоплаченные расходы текущего месяца"""
    return get_pending_expenses(db, user.id)


@router.get("/comparison")
def comparison(
    year_from: int,
    month_from: int,
    year_to: int,
    month_to: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Сравнение периодов (включительно)"""
    return get_comparison(db, user.id, year_from, month_from, year_to, month_to)


@router.get("/{year}/{month}")
def dashboard(
    year: int,
    month: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_month(month)
    return get_monthly_dashboard(db, user.id, year, month)


@router.get("/{year}/{month}/details")
def details(
    year: int,
    month: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_month(month)
    return get_monthly_details(db, user.id, year, month)


@router.get("/{year}/{month}/export")
def export(
    year: int,
    month: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_month(month)
    return get_export_data(db, user.id, year, month)


@router.post("/{year}/{month}/generate")
def generate_occurrences(
    year: int,
    month: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Создать недостающие occurrences регулярных расходов (идемпотентно)"""
    created = OccurrenceGenerator(db).generate_month(user.id, year, month)
    return {"created": len(created)}


@router.get("/{year}/{month}/salary", response_model=SalaryResponse)
def read_salary(
    year: int,
    month: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_month(month)
    return SalaryResponse(year=year, month=month, amount=get_salary(db, user.id, year, month))


@router.put("/{year}/{month}/salary", response_model=SalaryResponse)
def set_salary(
    year: int,
    month: int,
    req: SalaryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    salary = SetSalaryUseCase(db).execute(user.id, year, month, req.amount)
    return SalaryResponse(year=salary.year, month=salary.month, amount=float(salary.amount))
