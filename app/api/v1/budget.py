"""
Budget analysis endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.infrastructure.db.models import User
from app.application.budget import get_budget_analysis, get_category_budget_status


router = APIRouter(prefix="/api/v1/budget", tags=["budget"])


@router.get("/{year}/{month}")
def budget_analysis(
    year: int,
    month: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Распределение дохода по категориям и фактические траты"""
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Месяц должен быть от 1 до 12")
    return get_budget_analysis(db, user.id, year, month)


@router.get("/{year}/{month}/categories/{category_id}")
def category_budget_status(
    year: int,
    month: int,
    category_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Месяц должен быть от 1 до 12")
    return get_category_budget_status(db, user.id, category_id, year, month)
