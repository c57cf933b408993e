# wishbucket/main.py

import asyncio
import html
import logging
import traceback
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Конфигурация и ядро
from wishbucket.core.config import settings as config
from wishbucket.core.limiter import limiter
from wishbucket.core.logging_config import setup_logging
from wishbucket.core.redis import redis_client

# Роутеры FastAPI
from wishbucket.routers.v1.api import api_router
from wishbucket.routers.webhooks import telegram_router

# Логика бота
from wishbucket.bot.core import bot, dp
from wishbucket.bot.handlers.hints import hints_router
from wishbucket.bot.handlers.user import user_router
from wishbucket.bot.services import notification as bot_notification_service
from wishbucket.clients.web import page_fetcher

# Фоновые задачи
from wishbucket.services.notification_cleanup import cleanup_old_notifications_task

# --- Инициализация ---
logger = logging.getLogger(__name__)
scheduler = AsyncIOScheduler()

STARTUP_LOCK_KEY = "wishbucket_startup_lock"

# --- Обработчик критических ошибок ---
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Глобальный обработчик для всех необработанных исключений.
    Логирует ошибку и отправляет уведомление админам.
    """
    logger.critical(f"Unhandled exception for request: {request.method} {request.url}", exc_info=exc)

    error_details = html.escape("".join(traceback.format_exception(exc))[-3000:])
    client = f"{request.client.host}:{request.client.port}" if request.client else "unknown"

    error_message = (
        f"🚨 <b>Critical API error!</b>\n\n"
        f"<b>URL:</b> <code>{html.escape(f'{request.method} {request.url}')}</code>\n"
        f"<b>Client:</b> <code>{client}</code>\n\n"
        f"<b>Traceback:</b>\n<pre>{error_details}</pre>"
    )

    asyncio.create_task(
        bot_notification_service.send_error_to_super_admins(error_message)
    )

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error. The administrator has been notified."},
    )

# --- Lifespan Manager (запуск и остановка приложения) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application lifespan startup...")

    # Регистрация роутеров aiogram должна быть у всех воркеров
    if user_router.parent_router is None:
        dp.include_router(user_router)
    # Подсказки после /start: последний обработчик ловит любой текст
    if hints_router.parent_router is None:
        dp.include_router(hints_router)
    logger.info("Aiogram routers included.")

    # Блокировка через Redis: вебхук и планировщик запускает только один воркер
    is_main_worker = await redis_client.set(STARTUP_LOCK_KEY, "1", ex=60, nx=True)

    if is_main_worker:
        logger.info("This is the main worker. Running initial setup...")

        webhook_url = f"{config.BASE_WEBHOOK_URL}{config.TELEGRAM_WEBHOOK_PATH}"
        await bot.set_webhook(url=webhook_url, secret_token=config.TELEGRAM_WEBHOOK_SECRET)
        logger.info("Telegram webhook registered.")

        if not scheduler.running:
            scheduler.add_job(bot_notification_service.retry_pending_notifications_task, 'interval', minutes=1)
            scheduler.add_job(cleanup_old_notifications_task, 'cron', hour=5, minute=30, timezone='UTC')
            scheduler.start()
            logger.info("Scheduler started with background jobs.")
    else:
        logger.info("This is a secondary worker. Skipping initial setup.")

    yield

    # Код при остановке
    await page_fetcher.aclose()

    if is_main_worker:
        logger.info("Main worker shutting down...")
        if scheduler.running:
            scheduler.shutdown()
            logger.info("Scheduler shut down.")

        await bot.delete_webhook()
        logger.info("Telegram webhook deleted.")

        await redis_client.delete(STARTUP_LOCK_KEY)
    else:
        logger.info("Secondary worker shutting down.")

    await bot.session.close()

# --- Создание FastAPI приложения ---
app = FastAPI(
    title="WishBucket Mini App Service",
    description="Backend for Frontend service for the WishBucket Telegram Mini App",
    version="0.1.0",
    lifespan=lifespan
)

app.state.limiter = limiter

origins = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:5173", # для Vite
    "https://web.telegram.org",
    config.MINI_APP_URL,
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Регистрация обработчиков исключений ---
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Подключение роутеров FastAPI ---
app.include_router(api_router)

# Веб-хук Telegram (остается в корне)
app.include_router(telegram_router, tags=["Telegram Bot"])
