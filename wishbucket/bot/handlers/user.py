# wishbucket/bot/handlers/user.py

import logging

from aiogram import Router
from aiogram.filters import CommandObject, CommandStart
from aiogram.types import Message
from aiogram.utils.keyboard import InlineKeyboardBuilder

from wishbucket.crud import user as crud_user
from wishbucket.dependencies import get_db_context
from wishbucket.utils.telegram import mini_app_link

logger = logging.getLogger(__name__)
# Создаем роутер для этого модуля.
user_router = Router()

# Параметры /start, которые передаем в Mini App как есть
FORWARDED_START_PREFIXES = ("ref_", "wishlist_")


def build_start_param(args: str | None) -> str | None:
    """Параметр для Mini App из аргумента /start ('ref_ABC12345', 'wishlist_42')."""
    if not args:
        return None
    args = args.strip()
    if args.startswith(FORWARDED_START_PREFIXES):
        return args
    return None


@user_router.message(CommandStart())
async def command_start_handler(message: Message, command: CommandObject) -> None:
    """
    Отвечает на /start кнопкой открытия Mini App.
    Реферальный код и ссылка на вишлист пробрасываются в Mini App через startapp,
    а сам код применяется при входе в приложение.
    """
    with get_db_context() as db:
        db_user = crud_user.get_user_by_id(db, user_id=message.from_user.id)
        if db_user and not db_user.bot_accessible:
            logger.info(f"User {db_user.id} re-activated the bot. Setting bot_accessible to True.")
            crud_user.set_bot_accessible(db, db_user, True)

    builder = InlineKeyboardBuilder()
    builder.button(text="🎁 Open WishBucket", url=mini_app_link(build_start_param(command.args)))

    await message.answer(
        f"👋 Hi, {message.from_user.full_name}!\n\n"
        "Create wishlists, share them with friends and never get an unwanted gift again.",
        reply_markup=builder.as_markup()
    )
