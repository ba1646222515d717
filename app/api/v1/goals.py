"""
Goal API endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.infrastructure.db.models import User
from app.application.goals import (
    CreateGoalUseCase, UpdateGoalUseCase, UpdateGoalAmountUseCase,
    ChangeGoalStatusUseCase, DeleteGoalUseCase,
    list_goals, get_goal, get_goals_summary,
)
from app.domain.goal import AMOUNT_OPERATIONS


router = APIRouter(prefix="/api/v1/goals", tags=["goals"])


# === Request models ===

class CreateGoalRequest(BaseModel):
    name: str
    goal_type: str  # SAVINGS, DEBT_PAYMENT, EXPENSE_REDUCTION, CUSTOM
    target_amount: float | str
    current_amount: float | str = 0
    description: str | None = None
    category_id: int | None = None
    target_date: date | None = None


class UpdateGoalRequest(BaseModel):
    name: str | None = None
    goal_type: str | None = None
    target_amount: float | str | None = None
    current_amount: float | str | None = None
    description: str | None = None
    category_id: int | None = None
    target_date: date | None = None


class GoalAmountRequest(BaseModel):
    amount: float | str
    operation: str  # add, subtract, set

    @field_validator("operation")
    @classmethod
    def validate_operation(cls, v: str) -> str:
        if v not in AMOUNT_OPERATIONS:
            raise ValueError(f"operation должен быть одним из {', '.join(AMOUNT_OPERATIONS)}")
        return v


class GoalStatusRequest(BaseModel):
    status: str  # ACTIVE, COMPLETED, CANCELLED, PAUSED


# === Endpoints ===

@router.get("/summary")
def goals_summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_goals_summary(db, user.id)


@router.get("/")
def get_goals(
    status: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Цели: сначала ACTIVE, затем новые"""
    return list_goals(db, user.id, status=status)


@router.post("/", status_code=201)
def create_goal(
    req: CreateGoalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goal = CreateGoalUseCase(db).execute(
        user_id=user.id,
        name=req.name,
        goal_type=req.goal_type,
        target_amount=req.target_amount,
        current_amount=req.current_amount,
        description=req.description,
        category_id=req.category_id,
        target_date=req.target_date,
    )
    return get_goal(db, user.id, goal.id)


@router.get("/{goal_id}")
def read_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_goal(db, user.id, goal_id)


@router.patch("/{goal_id}")
def update_goal(
    goal_id: int,
    req: UpdateGoalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    UpdateGoalUseCase(db).execute(user.id, goal_id, **req.model_dump(exclude_unset=True))
    return get_goal(db, user.id, goal_id)


@router.post("/{goal_id}/amount")
def update_goal_amount(
    goal_id: int,
    req: GoalAmountRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """add / subtract / set; достижение цели завершает её"""
    UpdateGoalAmountUseCase(db).execute(user.id, goal_id, req.amount, req.operation)
    return get_goal(db, user.id, goal_id)


@router.post("/{goal_id}/status")
def change_goal_status(
    goal_id: int,
    req: GoalStatusRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ChangeGoalStatusUseCase(db).execute(user.id, goal_id, req.status)
    return get_goal(db, user.id, goal_id)


@router.delete("/{goal_id}")
def delete_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    DeleteGoalUseCase(db).execute(user.id, goal_id)
    return {"status": "deleted"}
