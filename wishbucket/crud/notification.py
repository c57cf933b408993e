# wishbucket/crud/notification.py
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from wishbucket.models.notification import (
    DELIVERY_PENDING,
    Notification,
)

def build_notification(
    db: Session,
    user_id: int,
    type: str,
    title: str,
    message: str | None = None,
    data: dict | None = None,
) -> Notification:
    """
    Создает уведомление (запись outbox) и добавляет его в сессию.
    Требует внешнего вызова db.commit() - так уведомление попадает
    в ту же транзакцию, что и основное изменение.
    """
    db_notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        data=data,
        delivery_status=DELIVERY_PENDING,
    )
    db.add(db_notification)
    return db_notification

def get_notification(db: Session, notification_id: int) -> Notification | None:
    return db.query(Notification).filter(Notification.id == notification_id).first()

def get_notifications(
    db: Session,
    user_id: int,
    skip: int = 0,
    limit: int = 20,
    unread_only: bool = False
) -> List[Notification]:
    """Получает пагинированный список уведомлений."""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(skip).limit(limit).all()

def count_notifications(db: Session, user_id: int, unread_only: bool = False) -> int:
    """Считает уведомления с фильтром."""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)
    return query.count()

def mark_notification_as_read(db: Session, user_id: int, notification_id: int) -> Notification | None:
    """Помечает конкретное уведомление как прочитанное."""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id
    ).first()
    if notification is None:
        return None
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification

def mark_all_notifications_as_read(db: Session, user_id: int):
    """Помечает все уведомления пользователя как прочитанные."""
    stmt = update(Notification).where(
        Notification.user_id == user_id,
        Notification.is_read == False
    ).values(is_read=True)
    db.execute(stmt)
    db.commit()

def get_pending_deliveries(
    db: Session,
    older_than_seconds: int,
    max_attempts: int,
    limit: int = 100
) -> List[Notification]:
    """
    Уведомления, которые еще не доставлены в Telegram.
    Свежие пропускаем: их доставляет фоновая задача сразу после коммита.
    """
    threshold = datetime.now(timezone.utc) - timedelta(seconds=older_than_seconds)
    return db.query(Notification).filter(
        Notification.delivery_status == DELIVERY_PENDING,
        Notification.delivery_attempts < max_attempts,
        Notification.created_at < threshold
    ).order_by(Notification.id.asc()).limit(limit).all()

def smart_delete_old_notifications(
    db: Session,
    read_older_than_days: int,
    any_older_than_days: int
) -> int:
    """Удаляет прочитанные старые уведомления и любые очень старые."""
    now = datetime.now(timezone.utc)
    read_threshold = now - timedelta(days=read_older_than_days)
    any_threshold = now - timedelta(days=any_older_than_days)

    result = db.query(Notification).filter(
        or_(
            (Notification.is_read == True) & (Notification.created_at < read_threshold),
            Notification.created_at < any_threshold,
        )
    ).delete(synchronize_session=False)

    db.commit()
    return result
