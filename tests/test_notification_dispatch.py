# tests/test_notification_dispatch.py

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from aiogram.exceptions import TelegramForbiddenError

from wishbucket.bot.services import notification as bot_notification_service
from wishbucket.crud import notification as crud_notification
from wishbucket.models.notification import (
    DELIVERY_FAILED,
    DELIVERY_PENDING,
    DELIVERY_SENT,
    DELIVERY_SKIPPED,
    Notification,
)
from wishbucket.services.notification_cleanup import cleanup_old_notifications


@pytest.fixture
def recipient(make_user):
    return make_user(1001, first_name="Alice")


def _notification(db_session, user_id: int, is_read: bool = False, **fields) -> Notification:
    params = {"type": "referral_signup", "title": "🎉 New Referral!", "message": "Bob joined"}
    params.update(fields)
    notification = crud_notification.build_notification(db_session, user_id=user_id, **params)
    notification.is_read = is_read
    db_session.commit()
    db_session.refresh(notification)
    return notification


def _age(db_session, notification: Notification, **delta):
    notification.created_at = datetime.now(timezone.utc) - timedelta(**delta)
    db_session.commit()


async def test_delivery_marks_notification_sent(db_session, recipient, mock_send_message):
    notification = _notification(db_session, recipient.id, data={"referred_user_id": 2002})

    sent = await bot_notification_service.deliver_notification(db_session, notification)

    assert sent is True
    assert notification.delivery_status == DELIVERY_SENT
    assert notification.delivery_attempts == 1
    assert notification.delivered_at is not None

    mock_send_message.assert_awaited_once()
    kwargs = mock_send_message.call_args.kwargs
    assert kwargs["chat_id"] == 1001
    assert kwargs["text"] == "<b>🎉 New Referral!</b>\n\nBob joined"
    button = kwargs["reply_markup"].inline_keyboard[0][0]
    assert button.url == "https://t.me/WishBucketBot/app?startapp=invite"


async def test_message_text_is_html_escaped(db_session, recipient, mock_send_message):
    notification = _notification(db_session, recipient.id, title="<script>", message="Tom & Jerry")

    await bot_notification_service.deliver_notification(db_session, notification)

    assert mock_send_message.call_args.kwargs["text"] == "<b>&lt;script&gt;</b>\n\nTom &amp; Jerry"


async def test_blocked_bot_marks_user_inaccessible(db_session, recipient, mock_send_message):
    mock_send_message.side_effect = TelegramForbiddenError(method=MagicMock(), message="Forbidden: bot was blocked by the user")
    notification = _notification(db_session, recipient.id)

    sent = await bot_notification_service.deliver_notification(db_session, notification)

    assert sent is False
    assert notification.delivery_status == DELIVERY_FAILED
    db_session.refresh(recipient)
    assert recipient.bot_accessible is False


async def test_inaccessible_user_is_skipped(db_session, make_user, mock_send_message):
    user = make_user(1002, bot_accessible=False)
    notification = _notification(db_session, user.id)

    sent = await bot_notification_service.deliver_notification(db_session, notification)

    assert sent is False
    assert notification.delivery_status == DELIVERY_SKIPPED
    mock_send_message.assert_not_awaited()


async def test_transient_failure_stays_pending(db_session, recipient, mock_send_message):
    mock_send_message.side_effect = RuntimeError("Telegram is down")
    notification = _notification(db_session, recipient.id)

    sent = await bot_notification_service.deliver_notification(db_session, notification)

    assert sent is False
    assert notification.delivery_status == DELIVERY_PENDING
    assert notification.delivery_attempts == 1


async def test_retry_delivers_only_stale_pending(db_session, recipient, mock_send_message):
    stale = _notification(db_session, recipient.id)
    fresh = _notification(db_session, recipient.id)
    already_sent = _notification(db_session, recipient.id)
    _age(db_session, stale, minutes=5)
    already_sent.delivery_status = DELIVERY_SENT
    _age(db_session, already_sent, minutes=5)

    sent_count = await bot_notification_service.retry_pending_notifications(db_session)

    assert sent_count == 1
    assert mock_send_message.await_count == 1
    db_session.refresh(stale)
    db_session.refresh(fresh)
    assert stale.delivery_status == DELIVERY_SENT
    assert fresh.delivery_status == DELIVERY_PENDING


async def test_retry_gives_up_after_max_attempts(db_session, recipient, mock_send_message, mocker):
    mocker.patch.object(bot_notification_service.settings, "NOTIFICATION_MAX_ATTEMPTS", 2)
    mock_send_message.side_effect = RuntimeError("Telegram is down")
    notification = _notification(db_session, recipient.id)
    _age(db_session, notification, minutes=5)

    await bot_notification_service.retry_pending_notifications(db_session)
    db_session.refresh(notification)
    assert notification.delivery_status == DELIVERY_PENDING

    await bot_notification_service.retry_pending_notifications(db_session)
    db_session.refresh(notification)
    assert notification.delivery_status == DELIVERY_FAILED
    assert notification.delivery_attempts == 2

    # Больше не пытаемся
    await bot_notification_service.retry_pending_notifications(db_session)
    assert mock_send_message.await_count == 2


async def test_dispatch_task_never_raises(db_session, recipient, mock_send_message, mocker):
    @contextmanager
    def fake_db_context():
        yield db_session

    mocker.patch.object(bot_notification_service, "get_db_context", fake_db_context)
    notification = _notification(db_session, recipient.id)

    await bot_notification_service.dispatch_notification_task(notification.id)
    db_session.refresh(notification)
    assert notification.delivery_status == DELIVERY_SENT

    mock_send_message.side_effect = RuntimeError("boom")
    failing = _notification(db_session, recipient.id)
    await bot_notification_service.dispatch_notification_task(failing.id)
    await bot_notification_service.dispatch_notification_task(999999)


async def test_error_report_goes_to_every_admin(mock_send_message, mocker):
    mocker.patch.object(bot_notification_service.settings, "ADMIN_TELEGRAM_IDS_STR", "11, 22")
    mock_send_message.side_effect = [RuntimeError("first admin blocked the bot"), None]

    await bot_notification_service.send_error_to_super_admins("🚨 error")

    assert [c.kwargs["chat_id"] for c in mock_send_message.call_args_list] == [11, 22]


def test_cleanup_removes_old_read_and_very_old_notifications(db_session, recipient):
    old_read = _notification(db_session, recipient.id, is_read=True)
    old_unread = _notification(db_session, recipient.id)
    ancient = _notification(db_session, recipient.id)
    recent_read = _notification(db_session, recipient.id, is_read=True)
    _age(db_session, old_read, days=31)
    _age(db_session, old_unread, days=31)
    _age(db_session, ancient, days=91)
    _age(db_session, recent_read, days=2)

    deleted = cleanup_old_notifications(db_session)

    assert deleted == 2
    remaining = {n.id for n in db_session.query(Notification).all()}
    assert remaining == {old_unread.id, recent_read.id}
