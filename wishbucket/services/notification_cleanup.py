# wishbucket/services/notification_cleanup.py
import logging
from wishbucket.db.session import SessionLocal
from wishbucket.crud import notification as crud_notification

logger = logging.getLogger(__name__)

DELETE_READ_NOTIFICATIONS_AFTER_DAYS = 30
DELETE_ANY_NOTIFICATION_AFTER_DAYS = 90

def cleanup_old_notifications(db) -> int:
    """Удаляет прочитанные уведомления старше месяца и любые старше трех месяцев."""
    return crud_notification.smart_delete_old_notifications(
        db,
        read_older_than_days=DELETE_READ_NOTIFICATIONS_AFTER_DAYS,
        any_older_than_days=DELETE_ANY_NOTIFICATION_AFTER_DAYS
    )

def cleanup_old_notifications_task():
    """Задание планировщика для "умного" удаления старых уведомлений."""
    logger.info("--- Starting scheduled job: Cleanup of Old Notifications ---")
    with SessionLocal() as db:
        try:
            deleted_count = cleanup_old_notifications(db)
            if deleted_count > 0:
                logger.info(f"Deleted {deleted_count} old notifications.")
            else:
                logger.info("No old notifications to delete.")
        except Exception:
            logger.error("An error occurred during notification cleanup task", exc_info=True)
            db.rollback()
    logger.info("--- Finished scheduled job: Cleanup of Old Notifications ---")
