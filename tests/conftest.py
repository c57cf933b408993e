# tests/conftest.py
import os

# Настройки читаются при импорте, поэтому окружение задаем до импорта приложения
os.environ.setdefault("DATABASE_USER", "test")
os.environ.setdefault("DATABASE_PASSWORD", "test")
os.environ.setdefault("DATABASE_HOST", "localhost")
os.environ.setdefault("DATABASE_PORT", "5432")
os.environ.setdefault("DATABASE_NAME", "test")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("TELEGRAM_BOT_USERNAME", "WishBucketBot")
os.environ.setdefault("BASE_WEBHOOK_URL", "https://api.example.com")
os.environ.setdefault("TELEGRAM_WEBHOOK_SECRET", "webhook-secret")
os.environ.setdefault("MINI_APP_URL", "https://app.example.com")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("REDIS_PORT", "6379")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("AFFILIATE_IDS_JSON", '{"amazon.com": "wishbucket-20", "aliexpress.com": "ali-777"}')

import hashlib
import hmac
import json
import time
from unittest.mock import AsyncMock
from urllib.parse import urlencode

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wishbucket.core.config import settings
from wishbucket.db.session import Base
# Импортируем все модели для создания таблиц
from wishbucket.models import crowdfunding, friend, gift_hint, notification, referral, secret_santa, user, wishlist
from wishbucket.models.user import User

# Используем in-memory SQLite для тестов - это быстро и изолированно.
# StaticPool: одно соединение на всех, иначе каждая сессия видела бы пустую базу
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Фикстура для создания чистой базы данных для каждого теста.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db_session):
    """Фабрика пользователей: make_user(1001, referral_code="ABC12345", first_name="Alice")."""
    def _make_user(user_id: int, referral_code: str | None = None, **fields) -> User:
        db_user = User(id=user_id, referral_code=referral_code or f"U{user_id:07d}", **fields)
        db_session.add(db_user)
        db_session.commit()
        db_session.refresh(db_user)
        return db_user
    return _make_user


@pytest.fixture
def auth_headers():
    """Заголовки авторизации для пользователя."""
    from wishbucket.services.auth import create_access_token

    def _auth_headers(db_user: User) -> dict:
        token = create_access_token({"sub": str(db_user.id)})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture
def mock_send_message(mocker):
    """Подменяет отправку сообщений ботом."""
    from wishbucket.bot.core import bot
    return mocker.patch.object(bot, "send_message", new_callable=AsyncMock)


@pytest.fixture
def mock_dispatch(mocker):
    """
    Фоновые задачи доставки открывают собственную сессию к настоящей базе,
    поэтому в API-тестах они подменяются.
    """
    single = mocker.patch(
        "wishbucket.bot.services.notification.dispatch_notification_task", new_callable=AsyncMock
    )
    many = mocker.patch(
        "wishbucket.bot.services.notification.dispatch_many_task", new_callable=AsyncMock
    )
    return single, many


@pytest.fixture
async def client(db_session, mock_dispatch):
    from wishbucket.core.limiter import limiter
    from wishbucket.dependencies import get_db
    from wishbucket.main import app

    app.dependency_overrides[get_db] = lambda: db_session
    limiter.enabled = False
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    limiter.enabled = True


def build_init_data(user_info: dict, start_param: str | None = None, auth_date: int | None = None,
                    bot_token: str | None = None) -> str:
    """Собирает подписанную строку initData так же, как это делает Telegram."""
    fields = {
        "auth_date": str(auth_date if auth_date is not None else int(time.time())),
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        "user": json.dumps(user_info, separators=(",", ":")),
    }
    if start_param:
        fields["start_param"] = start_param

    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret_key = hmac.new(b"WebAppData", (bot_token or settings.TELEGRAM_BOT_TOKEN).encode(), hashlib.sha256).digest()
    fields["hash"] = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()
    return urlencode(fields)


@pytest.fixture
def init_data():
    return build_init_data
