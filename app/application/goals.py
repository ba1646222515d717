"""
Goal use cases - CRUD, amount updates with auto-completion, status changes
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.application.categories import get_owned_category
from app.application.errors import NotFoundError
from app.domain.goal import (
    GOAL_TYPES, GOAL_STATUSES, GOAL_STATUS_ACTIVE, GOAL_STATUS_COMPLETED, AMOUNT_OPERATIONS,
    goal_progress, remaining_amount, apply_amount_operation, should_auto_complete,
)
from app.infrastructure.db.models import GoalModel, CategoryModel
from app.utils.validation import parse_amount, validate_name

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


class GoalValidationError(ValueError):
    """Ошибка валидации цели"""
    pass


def _amount(value, field: str) -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        raise GoalValidationError(f"{field}: {e}")


def _validated_target(value) -> Decimal:
    target = _amount(value, "target_amount")
    if target <= 0:
        raise GoalValidationError("Целевая сумма должна быть больше 0")
    return target


def _validated_current(value) -> Decimal:
    current = _amount(value, "current_amount")
    if current < 0:
        raise GoalValidationError("Текущая сумма не может быть отрицательной")
    return current


def _validated_description(value: str | None) -> str | None:
    if value is None:
        return None
    if len(value) > DESCRIPTION_MAX_LENGTH:
        raise GoalValidationError(f"Описание длиннее {DESCRIPTION_MAX_LENGTH} символов")
    return value


def get_owned_goal(db: Session, user_id: int, goal_id: int) -> GoalModel:
    goal = db.query(GoalModel).filter(
        GoalModel.id == goal_id,
        GoalModel.user_id == user_id,
    ).first()
    if not goal:
        raise NotFoundError(f"Цель #{goal_id} не найдена")
    return goal


def goal_to_dict(goal: GoalModel, category_name: str | None = None) -> Dict[str, Any]:
    target = float(goal.target_amount)
    current = float(goal.current_amount)
    return {
        "id": goal.id,
        "name": goal.name,
        "description": goal.description,
        "goal_type": goal.goal_type,
        "status": goal.status,
        "target_amount": target,
        "current_amount": current,
        "category_id": goal.category_id,
        "category_name": category_name,
        "start_date": goal.start_date,
        "target_date": goal.target_date,
        "completed_at": goal.completed_at,
        "progress": goal_progress(current, target),
        "remaining_amount": remaining_amount(current, target),
        "created_at": goal.created_at,
        "updated_at": goal.updated_at,
    }


class CreateGoalUseCase:
    """Use case: Создать цель"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        name: str,
        goal_type: str,
        target_amount,
        current_amount=0,
        description: str | None = None,
        category_id: int | None = None,
        target_date: date | None = None,
    ) -> GoalModel:
        try:
            name = validate_name(name, NAME_MAX_LENGTH)
        except ValueError as e:
            raise GoalValidationError(str(e))
        if goal_type not in GOAL_TYPES:
            raise GoalValidationError(f"Неверный тип цели: {goal_type}")
        target = _validated_target(target_amount)
        current = _validated_current(current_amount)
        description = _validated_description(description)
        if category_id is not None:
            get_owned_category(self.db, user_id, category_id)

        goal = GoalModel(
            user_id=user_id,
            name=name,
            description=description,
            goal_type=goal_type,
            status=GOAL_STATUS_ACTIVE,
            target_amount=target,
            current_amount=current,
            category_id=category_id,
            start_date=date.today(),
            target_date=target_date,
        )
        self.db.add(goal)
        self.db.commit()
        return goal


class UpdateGoalUseCase:
    """Use case: Обновить поля цели (partial)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, goal_id: int, **changes) -> GoalModel:
        goal = get_owned_goal(self.db, user_id, goal_id)

        if "name" in changes:
            try:
                goal.name = validate_name(changes["name"], NAME_MAX_LENGTH)
            except ValueError as e:
                raise GoalValidationError(str(e))
        if "description" in changes:
            goal.description = _validated_description(changes["description"])
        if "goal_type" in changes:
            if changes["goal_type"] not in GOAL_TYPES:
                raise GoalValidationError(f"Неверный тип цели: {changes['goal_type']}")
            goal.goal_type = changes["goal_type"]
        if "target_amount" in changes:
            goal.target_amount = _validated_target(changes["target_amount"])
        if "current_amount" in changes:
            goal.current_amount = _validated_current(changes["current_amount"])
        if "category_id" in changes:
            if changes["category_id"] is not None:
                get_owned_category(self.db, user_id, changes["category_id"])
            goal.category_id = changes["category_id"]
        if "target_date" in changes:
            goal.target_date = changes["target_date"]

        self.db.commit()
        return goal


class UpdateGoalAmountUseCase:
    """
    add / subtract / set the current amount.

    ACTIVE goal reaching the target -> COMPLETED + completed_at.
    A later decrease does not reopen it.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, goal_id: int, amount, operation: str) -> GoalModel:
        if operation not in AMOUNT_OPERATIONS:
            raise GoalValidationError(f"Неверная операция: {operation}")
        value = _amount(amount, "amount")
        if value < 0:
            raise GoalValidationError("Сумма не может быть отрицательной")

        goal = get_owned_goal(self.db, user_id, goal_id)
        new_amount = apply_amount_operation(Decimal(goal.current_amount), value, operation)

        goal.current_amount = new_amount
        if should_auto_complete(goal.status, new_amount, Decimal(goal.target_amount)):
            goal.status = GOAL_STATUS_COMPLETED
            goal.completed_at = datetime.now(timezone.utc)

        self.db.commit()
        return goal


class ChangeGoalStatusUseCase:
    """COMPLETED stamps completed_at, any other status clears it"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, goal_id: int, status: str) -> GoalModel:
        if status not in GOAL_STATUSES:
            raise GoalValidationError(f"Неверный статус: {status}")

        goal = get_owned_goal(self.db, user_id, goal_id)
        goal.status = status
        goal.completed_at = datetime.now(timezone.utc) if status == GOAL_STATUS_COMPLETED else None

        self.db.commit()
        return goal


class DeleteGoalUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, goal_id: int) -> None:
        goal = get_owned_goal(self.db, user_id, goal_id)
        self.db.delete(goal)
        self.db.commit()


def _category_names(db: Session, goals: List[GoalModel]) -> Dict[int, str]:
    ids = {g.category_id for g in goals if g.category_id is not None}
    if not ids:
        return {}
    return {
        row.id: row.name for row in
        db.query(CategoryModel.id, CategoryModel.name).filter(CategoryModel.id.in_(ids)).all()
    }


def list_goals(db: Session, user_id: int, status: str | None = None) -> List[Dict[str, Any]]:
    """ACTIVE first, then newest"""
    if status is not None and status not in GOAL_STATUSES:
        raise GoalValidationError(f"Неверный статус: {status}")

    query = db.query(GoalModel).filter(GoalModel.user_id == user_id)
    if status:
        query = query.filter(GoalModel.status == status)

    status_order = case(
        {s: i for i, s in enumerate(GOAL_STATUSES)},
        value=GoalModel.status,
        else_=len(GOAL_STATUSES),
    )
    goals = query.order_by(status_order, GoalModel.created_at.desc(), GoalModel.id.desc()).all()
    names = _category_names(db, goals)
    return [goal_to_dict(g, names.get(g.category_id)) for g in goals]


def get_goal(db: Session, user_id: int, goal_id: int) -> Dict[str, Any]:
    goal = get_owned_goal(db, user_id, goal_id)
    names = _category_names(db, [goal])
    return goal_to_dict(goal, names.get(goal.category_id))


def get_goals_summary(db: Session, user_id: int) -> Dict[str, Any]:
    """Counts and progress over ACTIVE goals"""
    total_goals = db.query(func.count(GoalModel.id)).filter(GoalModel.user_id == user_id).scalar() or 0
    completed_goals = db.query(func.count(GoalModel.id)).filter(
        GoalModel.user_id == user_id,
        GoalModel.status == GOAL_STATUS_COMPLETED,
    ).scalar() or 0
    active = db.query(GoalModel).filter(
        GoalModel.user_id == user_id,
        GoalModel.status == GOAL_STATUS_ACTIVE,
    ).all()

    total_target = sum(float(g.target_amount) for g in active)
    total_current = sum(float(g.current_amount) for g in active)
    overall = (total_current / total_target) * 100 if total_target > 0 else 0.0

    return {
        "active_goals": len(active),
        "completed_goals": completed_goals,
        "total_goals": total_goals,
        "total_target_amount": total_target,
        "total_current_amount": total_current,
        "overall_progress": round(overall, 2),
        "remaining_amount": remaining_amount(total_current, total_target),
    }
