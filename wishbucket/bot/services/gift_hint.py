# wishbucket/bot/services/gift_hint.py
"""
Повторная отправка сохраненной подсказки в чат пользователя.
Медиа отправляется по file_id, который Telegram выдал при пересылке.
"""
import html
import logging

from wishbucket.bot.core import bot
from wishbucket.models.gift_hint import GiftHint

logger = logging.getLogger(__name__)

TELEGRAM_CAPTION_LIMIT = 1024
TELEGRAM_MESSAGE_LIMIT = 4096


def format_hint_header(hint: GiftHint) -> str:
    return f"💡 <b>Gift Hint from {html.escape(hint.about_name or 'Someone')}</b>\n\n"


def format_hint_preview(hint: GiftHint, length: int = 50) -> str:
    if not hint.hint_text:
        return "[Media]"
    text = html.escape(hint.hint_text[:length])
    if len(hint.hint_text) > length:
        text += "..."
    return text


async def send_hint(chat_id: int, hint: GiftHint):
    """Отправляет подсказку тем же типом сообщения, каким она была сохранена."""
    header = format_hint_header(hint)
    text = html.escape(hint.hint_text or "")

    if hint.message_type == "text" or not hint.media_file_id:
        await bot.send_message(chat_id=chat_id, text=(header + (text or "[No text]"))[:TELEGRAM_MESSAGE_LIMIT])
        return

    caption = (header + text)[:TELEGRAM_CAPTION_LIMIT]
    if hint.message_type == "photo":
        await bot.send_photo(chat_id=chat_id, photo=hint.media_file_id, caption=caption)
    elif hint.message_type == "voice":
        await bot.send_voice(chat_id=chat_id, voice=hint.media_file_id, caption=caption)
    elif hint.message_type == "video":
        await bot.send_video(chat_id=chat_id, video=hint.media_file_id, caption=caption)
    elif hint.message_type == "video_note":
        # У кружков нет подписи, поэтому заголовок уходит отдельным сообщением
        await bot.send_message(chat_id=chat_id, text=caption)
        await bot.send_video_note(chat_id=chat_id, video_note=hint.media_file_id)
    else:
        await bot.send_document(chat_id=chat_id, document=hint.media_file_id, caption=caption)

    logger.debug(f"Hint {hint.id} ({hint.message_type}) sent to chat {chat_id}.")
