import json
from typing import Dict, List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Настройки базы данных
    DATABASE_USER: str
    DATABASE_PASSWORD: str
    DATABASE_HOST: str
    DATABASE_PORT: int
    DATABASE_NAME: str

    # Telegram
    TELEGRAM_BOT_TOKEN: str
    TELEGRAM_BOT_USERNAME: str
    BASE_WEBHOOK_URL: str
    TELEGRAM_WEBHOOK_SECRET: str
    MINI_APP_URL: str
    MINI_APP_SHORT_NAME: str = "app"
    # Сколько секунд initData считается свежей (0 - не проверять)
    INIT_DATA_MAX_AGE_SECONDS: int = 60 * 60 * 24

    # Настройки JWT токенов
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7 # 7 дней

    REDIS_HOST: str
    REDIS_PORT: int
    # Хранилище счетчиков для slowapi. По умолчанию - тот же Redis
    RATE_LIMIT_STORAGE_URI: str | None = None

    ADMIN_TELEGRAM_IDS_STR: str = Field(default="", alias="ADMIN_TELEGRAM_IDS")

    # Реферальная программа
    REFERRER_BONUS: int = 100
    REFERRED_BONUS: int = 50
    REFERRAL_CODE_LENGTH: int = 8

    # Парсинг страниц товаров
    SCRAPE_TIMEOUT_SECONDS: float = 10.0
    SCRAPE_MAX_BYTES: int = 2 * 1024 * 1024
    SCRAPE_CACHE_TTL_SECONDS: int = 60 * 60 * 6
    SCRAPE_USER_AGENT: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # JSON вида {"amazon.com": "my-tag-20"}: домен -> ID партнера
    AFFILIATE_IDS_JSON: str = Field(default="{}")

    # Доставка уведомлений в Telegram
    NOTIFICATION_MAX_ATTEMPTS: int = 5

    @property
    def ADMIN_TELEGRAM_IDS(self) -> List[int]:
        return [int(admin_id.strip()) for admin_id in self.ADMIN_TELEGRAM_IDS_STR.split(',') if admin_id.strip()]

    @property
    def AFFILIATE_IDS(self) -> Dict[str, str]:
        return json.loads(self.AFFILIATE_IDS_JSON or "{}")

    @property
    def TELEGRAM_WEBHOOK_PATH(self) -> str:
        # Путь, который мы будем слушать. /bot/ префикс для безопасности
        return f"/bot/{self.TELEGRAM_BOT_TOKEN}"

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    @property
    def DATABASE_URL(self) -> str:
        return f"postgresql+psycopg2://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True)

settings = Settings()
