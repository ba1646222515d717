"""
In-app notification endpoints
"""
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.infrastructure.db.models import User, NotificationModel
from app.application.notifications import (
    MarkNotificationReadUseCase, ArchiveNotificationUseCase,
    list_notifications, get_unread_count, generate_monthly_notifications,
)


router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


class NotificationResponse(BaseModel):
    id: int
    notification_type: str
    priority: str
    title: str
    message: str
    metadata: dict[str, Any] | None
    is_read: bool
    read_at: datetime | None
    action_url: str | None
    action_label: str | None
    created_at: datetime


def _notification_response(n: NotificationModel) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        notification_type=n.notification_type,
        priority=n.priority,
        title=n.title,
        message=n.message,
        metadata=n.payload,
        is_read=n.is_read,
        read_at=n.read_at,
        action_url=n.action_url,
        action_label=n.action_label,
        created_at=n.created_at,
    )


@router.get("/", response_model=list[NotificationResponse])
def get_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Неархивные уведомления: по приоритету, затем новые"""
    return [_notification_response(n) for n in list_notifications(db, user.id, limit=limit, offset=offset)]


@router.get("/unread-count")
def unread_count(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"count": get_unread_count(db, user.id)}


@router.post("/generate", response_model=list[NotificationResponse])
def generate(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Проверить бюджет и неоплаченные расходы текущего месяца"""
    return [_notification_response(n) for n in generate_monthly_notifications(db, user.id)]


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _notification_response(MarkNotificationReadUseCase(db).execute(user.id, notification_id))


@router.post("/{notification_id}/archive", response_model=NotificationResponse)
def archive(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _notification_response(ArchiveNotificationUseCase(db).execute(user.id, notification_id))
