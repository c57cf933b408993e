# wishbucket/bot/core.py
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from wishbucket.core.config import settings

default_properties = DefaultBotProperties(parse_mode=ParseMode.HTML)

bot = Bot(token=settings.TELEGRAM_BOT_TOKEN, default=default_properties)

dp = Dispatcher()
