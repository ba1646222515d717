"""
In-app notifications: CRUD, read/archive state, and rule-based generation.

Rules:
- BUDGET_EXCEEDED (HIGH): category with a budget is over it
- BUDGET_WARNING (MEDIUM): usage >= BUDGET_WARNING_PERCENT and < 100
- BUDGET_AVAILABLE (LOW): unassigned income above UNASSIGNED_NOTIFY_MIN
- PAYMENT_REMINDER (MEDIUM): unpaid, unskipped expenses of the current month

Delivery outside the app is not handled here.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.application.budget import get_budget_analysis
from app.application.errors import NotFoundError
from app.application.monthly import get_pending_expenses
from app.config import get_settings
from app.domain.period import local_today
from app.infrastructure.db.models import NotificationModel
from app.utils.money import format_money, format_percent

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = (
    "BUDGET_EXCEEDED", "BUDGET_WARNING", "PAYMENT_REMINDER", "MONTHLY_SUMMARY",
    "SAVINGS_MILESTONE", "SPENDING_SPIKE", "BUDGET_AVAILABLE",
)

# Ранг для сортировки: выше - важнее
PRIORITY_RANK = {"LOW": 0, "MEDIUM": 1, "HIGH": 2, "URGENT": 3}


class NotificationValidationError(ValueError):
    pass


def create_notification(
    db: Session,
    user_id: int,
    notification_type: str,
    priority: str,
    title: str,
    message: str,
    payload: Dict[str, Any] | None = None,
    action_url: str | None = None,
    action_label: str | None = None,
) -> NotificationModel:
    """Create a notification (flushes, caller commits)"""
    if notification_type not in NOTIFICATION_TYPES:
        raise NotificationValidationError(f"Неверный тип уведомления: {notification_type}")
    if priority not in PRIORITY_RANK:
        raise NotificationValidationError(f"Неверный приоритет: {priority}")

    notif = NotificationModel(
        user_id=user_id,
        notification_type=notification_type,
        priority=priority,
        priority_rank=PRIORITY_RANK[priority],
        title=title,
        message=message,
        payload=payload,
        action_url=action_url,
        action_label=action_label,
    )
    db.add(notif)
    db.flush()
    return notif


def list_notifications(db: Session, user_id: int, limit: int = 20, offset: int = 0) -> List[NotificationModel]:
    """Non-archived, most important first, then newest"""
    return (
        db.query(NotificationModel)
        .filter(
            NotificationModel.user_id == user_id,
            NotificationModel.is_archived == False,
        )
        .order_by(
            NotificationModel.priority_rank.desc(),
            NotificationModel.created_at.desc(),
            NotificationModel.id.desc(),
        )
        .limit(limit)
        .offset(offset)
        .all()
    )


def get_unread_count(db: Session, user_id: int) -> int:
    return db.query(func.count(NotificationModel.id)).filter(
        NotificationModel.user_id == user_id,
        NotificationModel.is_read == False,
        NotificationModel.is_archived == False,
    ).scalar() or 0


def _get_owned(db: Session, user_id: int, notification_id: int) -> NotificationModel:
    notif = db.query(NotificationModel).filter(
        NotificationModel.id == notification_id,
        NotificationModel.user_id == user_id,
    ).first()
    if not notif:
        raise NotFoundError(f"Уведомление #{notification_id} не найдено")
    return notif


class MarkNotificationReadUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, notification_id: int) -> NotificationModel:
        notif = _get_owned(self.db, user_id, notification_id)
        notif.is_read = True
        notif.read_at = datetime.now(timezone.utc)
        self.db.commit()
        return notif


class ArchiveNotificationUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, notification_id: int) -> NotificationModel:
        notif = _get_owned(self.db, user_id, notification_id)
        notif.is_archived = True
        notif.archived_at = datetime.now(timezone.utc)
        self.db.commit()
        return notif


# ---------------------------------------------------------------------------
# Rule-based generation
# ---------------------------------------------------------------------------


def generate_budget_notifications(db: Session, user_id: int, year: int, month: int) -> List[NotificationModel]:
    settings = get_settings()
    analysis = get_budget_analysis(db, user_id, year, month)
    if analysis["monthly_income"] == 0:
        return []

    currency = settings.CURRENCY
    budget_url = f"/budget?year={year}&month={month}"
    created = []

    for cat in analysis["categories"]:
        if cat["budget_percentage"] <= 0:
            continue
        if cat["is_over_budget"]:
            over = abs(cat["remaining"])
            created.append(create_notification(
                db, user_id, "BUDGET_EXCEEDED", "HIGH",
                f"Budget Exceeded: {cat['name']}",
                f"You've exceeded your {cat['name']} budget by {format_money(over, currency)}. "
                f"Consider reviewing your spending in this category.",
                payload={
                    "category_id": cat["id"],
                    "category_name": cat["name"],
                    "budget_amount": cat["budget_amount"],
                    "actual_spent": cat["actual_spent"],
                    "over_amount": over,
                },
                action_url=budget_url,
                action_label="View Budget",
            ))
        elif settings.BUDGET_WARNING_PERCENT <= cat["usage_percentage"] < 100:
            created.append(create_notification(
                db, user_id, "BUDGET_WARNING", "MEDIUM",
                f"Budget Warning: {cat['name']}",
                f"You've used {format_percent(cat['usage_percentage'])} of your {cat['name']} budget. "
                f"You have {format_money(cat['remaining'], currency)} remaining.",
                payload={
                    "category_id": cat["id"],
                    "category_name": cat["name"],
                    "usage_percentage": cat["usage_percentage"],
                    "remaining": cat["remaining"],
                },
                action_url=budget_url,
                action_label="View Budget",
            ))

    unassigned = analysis["unassigned_amount"]
    if analysis["has_unassigned_income"] and unassigned > settings.UNASSIGNED_NOTIFY_MIN:
        unassigned_pct = 100 - analysis["total_budget_percentage"]
        created.append(create_notification(
            db, user_id, "BUDGET_AVAILABLE", "LOW",
            "Unassigned Budget Available",
            f"You have {format_money(unassigned, currency)} ({format_percent(unassigned_pct)}) of your income "
            f"unassigned. Consider allocating it to categories or savings.",
            payload={
                "unassigned_amount": unassigned,
                "unassigned_percentage": unassigned_pct,
            },
            action_url="/categories",
            action_label="Manage Categories",
        ))

    db.commit()
    return created


def generate_payment_reminders(db: Session, user_id: int, today: date | None = None) -> List[NotificationModel]:
    """One summary reminder for the current month's unpaid expenses"""
    pending = get_pending_expenses(db, user_id, today=today)
    if not pending:
        return []

    total = sum(p["estimated_amount"] for p in pending)
    notif = create_notification(
        db, user_id, "PAYMENT_REMINDER", "MEDIUM",
        f"{len(pending)} Payments Pending",
        f"You have {len(pending)} unpaid expenses totaling "
        f"{format_money(total, get_settings().CURRENCY)} for this month.",
        payload={
            "count": len(pending),
            "total_amount": total,
            "expenses": [
                {
                    "id": p["id"],
                    "name": p["name"],
                    "amount": p["estimated_amount"],
                    "category": p["category_name"],
                }
                for p in pending
            ],
        },
        action_url="/dashboard",
        action_label="View Expenses",
    )
    db.commit()
    return [notif]


def generate_monthly_notifications(db: Session, user_id: int, today: date | None = None) -> List[NotificationModel]:
    """Budget rules + payment reminders for the current month"""
    if today is None:
        today = local_today(get_settings().TIMEZONE)
    created = generate_budget_notifications(db, user_id, today.year, today.month)
    created += generate_payment_reminders(db, user_id, today=today)
    logger.info("Generated %d notification(s) for user %s", len(created), user_id)
    return created


def cleanup_old_notifications(db: Session, days_old: int = 30) -> int:
    """Delete archived notifications older than days_old. Returns count."""
    cutoff = datetime.now(timezone.utc) - timedelta(days=days_old)
    count = db.query(NotificationModel).filter(
        NotificationModel.is_archived == True,
        NotificationModel.created_at < cutoff,
    ).delete(synchronize_session=False)
    db.commit()
    return count
