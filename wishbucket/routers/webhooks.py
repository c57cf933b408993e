# wishbucket/routers/webhooks.py

import logging

from aiogram.types import Update
from fastapi import APIRouter, Header, HTTPException, status

from wishbucket.bot.core import bot, dp
from wishbucket.core.config import settings

logger = logging.getLogger(__name__)

# Подключается в main.py без префикса
telegram_router = APIRouter()


@telegram_router.post(settings.TELEGRAM_WEBHOOK_PATH, include_in_schema=False)
async def telegram_webhook(
    update: dict,
    x_telegram_bot_api_secret_token: str | None = Header(None)
):
    """
    Принимает обновления от Telegram и передает их в диспетчер aiogram.
    """
    if x_telegram_bot_api_secret_token != settings.TELEGRAM_WEBHOOK_SECRET:
        logger.warning("Telegram webhook called with an invalid secret token.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid secret token")

    await dp.feed_webhook_update(bot=bot, update=Update.model_validate(update, context={"bot": bot}))
    return {"status": "ok"}
