# wishbucket/bot/handlers/hints.py

import html
import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import (
    Message,
    MessageOriginChannel,
    MessageOriginChat,
    MessageOriginHiddenUser,
    MessageOriginUser,
)
from aiogram.utils.keyboard import InlineKeyboardBuilder
from sqlalchemy.exc import SQLAlchemyError

from wishbucket.bot.services.gift_hint import format_hint_preview
from wishbucket.crud import gift_hint as crud_gift_hint
from wishbucket.crud import user as crud_user
from wishbucket.dependencies import get_db_context
from wishbucket.services.auth import register_or_get_user
from wishbucket.utils.telegram import mini_app_link

logger = logging.getLogger(__name__)
hints_router = Router()

RECENT_HINTS_LIMIT = 5
SAVED_PREVIEW_LENGTH = 100


def describe_forward_origin(origin) -> dict:
    """О ком подсказка: автор пересланного сообщения, насколько его видно."""
    if isinstance(origin, MessageOriginUser):
        sender = origin.sender_user
        return {"about_user_id": sender.id, "about_name": sender.full_name, "about_username": sender.username}
    if isinstance(origin, MessageOriginHiddenUser):
        return {"about_name": origin.sender_user_name}
    if isinstance(origin, MessageOriginChat):
        return {"about_name": origin.sender_chat.title or "Chat", "about_username": origin.sender_chat.username}
    if isinstance(origin, MessageOriginChannel):
        return {"about_name": origin.chat.title or "Channel", "about_username": origin.chat.username}
    return {"about_name": "Unknown"}


def extract_media(message: Message) -> tuple[str, str | None]:
    """Тип сообщения и file_id медиа. Для фото берется самый большой размер."""
    if message.voice:
        return "voice", message.voice.file_id
    if message.video:
        return "video", message.video.file_id
    if message.video_note:
        return "video_note", message.video_note.file_id
    if message.photo:
        largest = max(message.photo, key=lambda p: p.width)
        return "photo", largest.file_id
    if message.document:
        return "document", message.document.file_id
    return "text", None


def _open_app_keyboard(text: str, start_param: str | None = None):
    builder = InlineKeyboardBuilder()
    builder.button(text=text, url=mini_app_link(start_param))
    return builder.as_markup()


@hints_router.message(Command("hints"))
async def hints_command_handler(message: Message) -> None:
    """Пять последних активных подсказок."""
    with get_db_context() as db:
        hints = crud_gift_hint.get_active_hints(db, user_id=message.from_user.id, limit=RECENT_HINTS_LIMIT)
        lines = [f"• <b>{html.escape(h.about_name)}</b>: {format_hint_preview(h)}" for h in hints]

    if not lines:
        await message.answer(
            "📭 You don't have any saved hints yet.\n\n"
            "Forward a message from a chat to save a gift idea!"
        )
        return

    await message.answer(
        "🎁 <b>Your Recent Gift Hints:</b>\n\n" + "\n".join(lines) +
        "\n\n📱 Open the app to see all hints and manage them.",
        reply_markup=_open_app_keyboard("📱 Open WishBucket", "hints"),
    )


@hints_router.message(F.forward_origin)
async def forwarded_message_handler(message: Message) -> None:
    """Пересланное сообщение сохраняется как подсказка о его авторе."""
    origin = describe_forward_origin(message.forward_origin)
    message_type, media_file_id = extract_media(message)
    hint_text = message.text or message.caption

    with get_db_context() as db:
        try:
            user, _ = register_or_get_user(db, message.from_user.model_dump(include={
                "id", "username", "first_name", "last_name", "language_code",
            }))
            if not origin.get("about_user_id") and origin.get("about_username"):
                known = crud_user.get_user_by_username(db, username=origin["about_username"])
                if known:
                    origin["about_user_id"] = known.id

            hint = crud_gift_hint.create_hint(
                db,
                user_id=user.id,
                hint_text=hint_text,
                message_type=message_type,
                media_file_id=media_file_id,
                telegram_message_id=message.message_id,
                telegram_chat_id=message.chat.id,
                forward_date=message.forward_origin.date,
                **origin,
            )
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Failed to save gift hint for user {message.from_user.id}", exc_info=True)
            await message.answer("❌ Sorry, couldn't save this hint. Please try again.")
            return
        preview = format_hint_preview(hint, length=SAVED_PREVIEW_LENGTH) if hint_text else "[Media message]"

    logger.info(f"User {message.from_user.id} saved gift hint {hint.id} ({message_type}).")
    media_label = f" ({message_type})" if message_type != "text" else ""
    await message.answer(
        "✅ <b>Gift hint saved!</b>\n\n"
        f"👤 <b>From:</b> {html.escape(origin['about_name'])}\n"
        f"💬 <b>Hint:</b> {preview}{media_label}\n\n"
        "You can view all hints in the app.",
        reply_markup=_open_app_keyboard("📱 View Hints", "hints"),
    )


@hints_router.message(F.text)
async def plain_message_handler(message: Message) -> None:
    await message.answer(
        "💡 <b>Tip:</b> To save a gift hint, <b>forward a message</b> from your chat!\n\n"
        "When someone says they want something, just forward that message to me and I'll remember it for you.",
        reply_markup=_open_app_keyboard("📱 Open WishBucket"),
    )
