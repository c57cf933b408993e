# wishbucket/routers/v1/endpoints/notification.py
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from wishbucket.dependencies import get_current_user, get_db
from wishbucket.models.user import User
from wishbucket.schemas.notification import Notification, PaginatedNotifications, UnreadCount
from wishbucket.services import notification_api as notification_api_service

router = APIRouter()


@router.get("/notifications", response_model=PaginatedNotifications)
def get_my_notifications(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Получает пагинированный список уведомлений для текущего пользователя."""
    return notification_api_service.get_paginated(db, current_user, page, size, unread_only)


@router.get("/notifications/unread-count", response_model=UnreadCount)
def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return notification_api_service.get_unread_count(db, current_user)


@router.post("/notifications/read-all", status_code=status.HTTP_204_NO_CONTENT)
def mark_all_notifications_as_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Помечает все уведомления пользователя как прочитанные."""
    notification_api_service.mark_all_as_read(db, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/notifications/{notification_id}/read", response_model=Notification)
def mark_notification_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return notification_api_service.mark_as_read(db, current_user, notification_id)
