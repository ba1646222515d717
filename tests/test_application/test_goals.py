"""
Tests for goals: CRUD, amount operations, auto-completion, ordering, summary
"""
from decimal import Decimal

import pytest

from app.application.errors import NotFoundError
from app.application.goals import (
    CreateGoalUseCase, UpdateGoalUseCase, UpdateGoalAmountUseCase, ChangeGoalStatusUseCase,
    DeleteGoalUseCase, GoalValidationError, get_goal, get_goals_summary, list_goals,
)
from app.infrastructure.db.models import GoalModel


@pytest.fixture
def goal(db_session, sample_user_id):
    return CreateGoalUseCase(db_session).execute(
        user_id=sample_user_id, name="Vacaciones", goal_type="SAVINGS", target_amount="1000",
    )


class TestCreateGoal:
    def test_defaults(self, db_session, goal):
        assert goal.status == "ACTIVE"
        assert goal.current_amount == Decimal("0")
        assert goal.start_date is not None

    def test_non_positive_target(self, db_session, sample_user_id):
        with pytest.raises(GoalValidationError, match="больше 0"):
            CreateGoalUseCase(db_session).execute(sample_user_id, "X", "SAVINGS", target_amount=0)

    def test_invalid_type(self, db_session, sample_user_id):
        with pytest.raises(GoalValidationError, match="Неверный тип"):
            CreateGoalUseCase(db_session).execute(sample_user_id, "X", "LOTTERY", target_amount=10)

    def test_foreign_category(self, db_session, other_user_id, category):
        cat, _ = category
        with pytest.raises(NotFoundError):
            CreateGoalUseCase(db_session).execute(other_user_id, "X", "SAVINGS", 10, category_id=cat.id)


class TestAmount:
    def test_add_is_monotonic_and_capped(self, db_session, sample_user_id, goal):
        """add с положительной суммой: прогресс не убывает и не больше 100"""
        uc = UpdateGoalAmountUseCase(db_session)
        progress = []
        for _ in range(5):
            uc.execute(sample_user_id, goal.id, 300, "add")
            progress.append(get_goal(db_session, sample_user_id, goal.id)["progress"])
        assert progress == sorted(progress)
        assert progress[-1] == 100

    def test_auto_complete(self, db_session, sample_user_id, goal):
        g = UpdateGoalAmountUseCase(db_session).execute(sample_user_id, goal.id, 1000, "set")
        assert g.status == "COMPLETED"
        assert g.completed_at is not None

    def test_decrease_does_not_reopen(self, db_session, sample_user_id, goal):
        uc = UpdateGoalAmountUseCase(db_session)
        uc.execute(sample_user_id, goal.id, 1200, "set")
        g = uc.execute(sample_user_id, goal.id, 500, "subtract")
        assert g.status == "COMPLETED"
        assert g.current_amount == Decimal("700")

    def test_subtract_clamps(self, db_session, sample_user_id, goal):
        g = UpdateGoalAmountUseCase(db_session).execute(sample_user_id, goal.id, 50, "subtract")
        assert g.current_amount == Decimal("0")

    def test_paused_not_completed(self, db_session, sample_user_id, goal):
        ChangeGoalStatusUseCase(db_session).execute(sample_user_id, goal.id, "PAUSED")
        g = UpdateGoalAmountUseCase(db_session).execute(sample_user_id, goal.id, 2000, "add")
        assert g.status == "PAUSED"

    def test_unknown_operation(self, db_session, sample_user_id, goal):
        with pytest.raises(GoalValidationError):
            UpdateGoalAmountUseCase(db_session).execute(sample_user_id, goal.id, 1, "double")

    @pytest.mark.parametrize("operation", ["add", "subtract", "set"])
    def test_negative_amount_rejected(self, db_session, sample_user_id, goal, operation):
        """Отрицательная сумма отклоняется, current_amount не меняется"""
        uc = UpdateGoalAmountUseCase(db_session)
        uc.execute(sample_user_id, goal.id, 100, "set")
        with pytest.raises(GoalValidationError, match="отрицательной"):
            uc.execute(sample_user_id, goal.id, -500, operation)
        db_session.refresh(goal)
        assert goal.current_amount == Decimal("100")


class TestStatus:
    def test_leaving_completed_clears_timestamp(self, db_session, sample_user_id, goal):
        uc = ChangeGoalStatusUseCase(db_session)
        assert uc.execute(sample_user_id, goal.id, "COMPLETED").completed_at is not None
        assert uc.execute(sample_user_id, goal.id, "ACTIVE").completed_at is None

    def test_invalid_status(self, db_session, sample_user_id, goal):
        with pytest.raises(GoalValidationError):
            ChangeGoalStatusUseCase(db_session).execute(sample_user_id, goal.id, "DONE")


def test_update_partial(db_session, sample_user_id, goal):
    UpdateGoalUseCase(db_session).execute(sample_user_id, goal.id, name="Viaje", target_amount="2000")
    data = get_goal(db_session, sample_user_id, goal.id)
    assert data["name"] == "Viaje"
    assert data["target_amount"] == 2000
    assert data["goal_type"] == "SAVINGS"


def test_delete(db_session, sample_user_id, other_user_id, goal):
    with pytest.raises(NotFoundError):
        DeleteGoalUseCase(db_session).execute(other_user_id, goal.id)
    DeleteGoalUseCase(db_session).execute(sample_user_id, goal.id)
    assert db_session.query(GoalModel).count() == 0


def test_list_active_first(db_session, sample_user_id, goal):
    uc = CreateGoalUseCase(db_session)
    done = uc.execute(sample_user_id, "Deuda", "DEBT_PAYMENT", 500)
    ChangeGoalStatusUseCase(db_session).execute(sample_user_id, done.id, "COMPLETED")

    goals = list_goals(db_session, sample_user_id)
    assert [g["status"] for g in goals] == ["ACTIVE", "COMPLETED"]
    assert [g["name"] for g in list_goals(db_session, sample_user_id, status="COMPLETED")] == ["Deuda"]


def test_summary(db_session, sample_user_id, goal):
    uc = CreateGoalUseCase(db_session)
    uc.execute(sample_user_id, "Auto", "SAVINGS", 3000, current_amount=1000)
    done = uc.execute(sample_user_id, "Deuda", "DEBT_PAYMENT", 500)
    ChangeGoalStatusUseCase(db_session).execute(sample_user_id, done.id, "COMPLETED")

    summary = get_goals_summary(db_session, sample_user_id)
    assert summary["total_goals"] == 3
    assert summary["active_goals"] == 2
    assert summary["completed_goals"] == 1
    assert summary["total_target_amount"] == 4000
    assert summary["total_current_amount"] == 1000
    assert summary["overall_progress"] == 25
    assert summary["remaining_amount"] == 3000
