# wishbucket/services/gift_hint.py
"""
Подсказки к подаркам. Создаются ботом из пересланных сообщений,
а в Mini App их можно просматривать, помечать и удалять.
"""
import logging

from aiogram.exceptions import TelegramAPIError, TelegramForbiddenError
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from wishbucket.bot.services import gift_hint as bot_hint_service
from wishbucket.crud import gift_hint as crud_gift_hint
from wishbucket.crud import user as crud_user
from wishbucket.models.gift_hint import GiftHint
from wishbucket.models.user import User
from wishbucket.schemas.gift_hint import GiftHintUpdate, HintCount, ResendResult

logger = logging.getLogger(__name__)


def _get_own_hint(db: Session, user: User, hint_id: int) -> GiftHint:
    hint = crud_gift_hint.get_hint(db, user_id=user.id, hint_id=hint_id)
    if not hint:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hint not found")
    return hint


def get_hints(db: Session, user: User, hint_status: str | None = None) -> list[GiftHint]:
    return crud_gift_hint.get_hints(db, user_id=user.id, status=hint_status)


def get_hint_counts(db: Session, user: User) -> list[HintCount]:
    """Сколько активных подсказок о каждом человеке. Имена сравниваются без учета регистра."""
    counts: dict[str, HintCount] = {}
    for hint in crud_gift_hint.get_active_hints(db, user_id=user.id):
        key = hint.about_name.lower()
        if key not in counts:
            counts[key] = HintCount(name=hint.about_name, count=0)
        counts[key].count += 1
    return sorted(counts.values(), key=lambda c: c.count, reverse=True)


def update_hint(db: Session, user: User, hint_id: int, data: GiftHintUpdate) -> GiftHint:
    hint = _get_own_hint(db, user, hint_id)
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("status") is None:
        update_data.pop("status", None)

    for field, value in update_data.items():
        setattr(hint, field, value)

    db.commit()
    db.refresh(hint)
    return hint


def delete_hint(db: Session, user: User, hint_id: int):
    hint = _get_own_hint(db, user, hint_id)
    crud_gift_hint.delete_hint(db, hint)
    logger.info(f"User {user.id} deleted gift hint {hint_id}.")


async def resend_hint(db: Session, user: User, hint_id: int) -> ResendResult:
    """Присылает подсказку обратно в личный чат с ботом."""
    hint = _get_own_hint(db, user, hint_id)
    try:
        await bot_hint_service.send_hint(chat_id=user.id, hint=hint)
    except TelegramForbiddenError:
        logger.warning(f"User {user.id} has blocked the bot. Updating status.")
        crud_user.set_bot_accessible(db, user, False)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Start the bot to receive messages")
    except TelegramAPIError as e:
        logger.error(f"Failed to resend hint {hint_id} to user {user.id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send hint to Telegram")

    logger.info(f"Resent gift hint {hint_id} to user {user.id}.")
    return ResendResult(success=True)
