# wishbucket/bot/services/notification.py
"""
Доставка уведомлений в Telegram.

Уведомления сначала пишутся в таблицу notifications (она же outbox) в той же
транзакции, что и основное действие. Отсюда они отправляются ботом:
сразу после коммита - фоновой задачей, а недоставленные - периодическим
заданием планировщика. Любая ошибка доставки только логируется.
"""
import html
import logging
from datetime import datetime, timezone

from aiogram.exceptions import TelegramForbiddenError
from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder
from sqlalchemy.orm import Session

from wishbucket.bot.core import bot
from wishbucket.core.config import settings
from wishbucket.crud import notification as crud_notification
from wishbucket.dependencies import get_db_context
from wishbucket.models.notification import (
    DELIVERY_FAILED,
    DELIVERY_PENDING,
    DELIVERY_SENT,
    DELIVERY_SKIPPED,
    Notification,
)
from wishbucket.models.user import User
from wishbucket.utils.telegram import mini_app_link

logger = logging.getLogger(__name__)

# Свежие уведомления доставляет фоновая задача запроса, планировщик их не трогает
RETRY_DELAY_SECONDS = 60
TELEGRAM_MESSAGE_LIMIT = 4096


def format_notification_text(notification: Notification) -> str:
    text = f"<b>{html.escape(notification.title)}</b>"
    if notification.message:
        text += f"\n\n{html.escape(notification.message)}"
    return text


def build_notification_keyboard(notification: Notification) -> InlineKeyboardMarkup:
    """Одна кнопка под сообщением, в зависимости от типа уведомления."""
    data = notification.data or {}
    wishlist_id = data.get("wishlist_id")
    builder = InlineKeyboardBuilder()

    if notification.type == "new_follower":
        builder.button(text="👥 View Friends", url=mini_app_link("friends"))
    elif notification.type in ("item_reserved", "item_purchased", "crowdfunding_contribution") and wishlist_id:
        builder.button(text="🎁 View Wishlist", url=mini_app_link(f"wishlist_{wishlist_id}"))
    elif notification.type in ("wishlist_shared", "friend_added_item") and wishlist_id:
        builder.button(text="📋 Open Wishlist", url=mini_app_link(f"wishlist_{wishlist_id}"))
    elif notification.type == "referral_signup":
        builder.button(text="🎉 Invite More Friends", url=mini_app_link("invite"))
    elif notification.type == "secret_santa_joined":
        builder.button(text="🎅 Open Secret Santa", url=mini_app_link("secret_santa"))
    else:
        builder.button(text="📱 Open WishBucket", url=mini_app_link())

    return builder.as_markup()


async def _send_message(db: Session, user: User, text: str, reply_markup=None) -> tuple[bool, str | None]:
    """
    Безопасная отправка сообщения.
    Обновляет статус 'bot_accessible' в случае блокировки.
    Возвращает кортеж (успех: bool, причина_неудачи: str | None).
    """
    if not user.bot_accessible:
        reason = "Bot is marked as inaccessible"
        logger.info(f"Skipping notification for user {user.id}: {reason}.")
        return False, reason

    try:
        await bot.send_message(chat_id=user.id, text=text, reply_markup=reply_markup)
        return True, None
    except TelegramForbiddenError:
        reason = "User has blocked the bot"
        logger.warning(f"User {user.id} has blocked the bot. Updating status.")
        user.bot_accessible = False
        db.add(user)
        return False, reason
    except Exception as e:
        reason = str(e)
        logger.error(f"Failed to send message to user {user.id}: {reason}")
        return False, reason


async def deliver_notification(db: Session, notification: Notification) -> bool:
    """
    Отправляет одно уведомление в Telegram и записывает результат доставки.
    Никогда не бросает исключений наружу из-за ошибок Telegram.
    """
    user = notification.user
    if user is None or not user.bot_accessible:
        notification.delivery_status = DELIVERY_SKIPPED
        db.commit()
        return False

    notification.delivery_attempts = (notification.delivery_attempts or 0) + 1
    sent, reason = await _send_message(
        db, user,
        text=format_notification_text(notification)[:TELEGRAM_MESSAGE_LIMIT],
        reply_markup=build_notification_keyboard(notification),
    )

    if sent:
        notification.delivery_status = DELIVERY_SENT
        notification.delivered_at = datetime.now(timezone.utc)
    elif not user.bot_accessible:
        notification.delivery_status = DELIVERY_FAILED
    elif notification.delivery_attempts >= settings.NOTIFICATION_MAX_ATTEMPTS:
        logger.warning(f"Giving up on notification {notification.id} after {notification.delivery_attempts} attempts: {reason}")
        notification.delivery_status = DELIVERY_FAILED
    else:
        notification.delivery_status = DELIVERY_PENDING

    db.commit()
    return sent


async def dispatch_notification_task(notification_id: int):
    """Фоновая задача: доставить только что созданное уведомление."""
    with get_db_context() as db:
        try:
            notification = crud_notification.get_notification(db, notification_id)
            if notification is None or notification.delivery_status != DELIVERY_PENDING:
                return
            await deliver_notification(db, notification)
        except Exception:
            logger.error(f"Failed to dispatch notification {notification_id}", exc_info=True)
            db.rollback()


async def dispatch_notifications(db: Session, notification_ids: list[int]):
    for notification_id in notification_ids:
        notification = crud_notification.get_notification(db, notification_id)
        if notification is not None and notification.delivery_status == DELIVERY_PENDING:
            await deliver_notification(db, notification)


async def dispatch_many_task(notification_ids: list[int]):
    """Фоновая задача: доставить пачку уведомлений (например, всем подписчикам)."""
    with get_db_context() as db:
        try:
            await dispatch_notifications(db, notification_ids)
        except Exception:
            logger.error(f"Failed to dispatch notifications {notification_ids}", exc_info=True)
            db.rollback()


async def retry_pending_notifications(db: Session) -> int:
    """Повторная доставка зависших уведомлений. Возвращает число успешно отправленных."""
    pending = crud_notification.get_pending_deliveries(
        db,
        older_than_seconds=RETRY_DELAY_SECONDS,
        max_attempts=settings.NOTIFICATION_MAX_ATTEMPTS,
    )
    sent_count = 0
    for notification in pending:
        if await deliver_notification(db, notification):
            sent_count += 1
    return sent_count


async def retry_pending_notifications_task():
    """Задание планировщика: дослать уведомления, которые не ушли сразу."""
    with get_db_context() as db:
        try:
            sent_count = await retry_pending_notifications(db)
            if sent_count:
                logger.info(f"Delivered {sent_count} pending notifications.")
        except Exception:
            logger.error("An error occurred during pending notifications retry", exc_info=True)
            db.rollback()


async def send_error_to_super_admins(text: str):
    """Отправляет сообщение об ошибке всем администраторам из настроек."""
    for admin_id in settings.ADMIN_TELEGRAM_IDS:
        try:
            await bot.send_message(chat_id=admin_id, text=text[:TELEGRAM_MESSAGE_LIMIT])
        except Exception as e:
            logger.error(f"Failed to send error report to admin {admin_id}: {e}")
