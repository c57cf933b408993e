# wishbucket/utils/telegram.py
import hashlib
import hmac
import time
from urllib.parse import parse_qsl

from wishbucket.core.config import settings

def validate_init_data(init_data: str) -> tuple[bool, dict]:
    """
    Валидирует initData от Telegram Mini App.
    Возвращает кортеж: (валидность, данные пользователя).
    """
    try:
        parsed_data = dict(parse_qsl(init_data, keep_blank_values=True, strict_parsing=True))
    except ValueError:
        return False, {}

    if "hash" not in parsed_data:
        return False, {}

    hash_str = parsed_data.pop("hash")
    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(parsed_data.items()))

    secret_key = hmac.new("WebAppData".encode(), settings.TELEGRAM_BOT_TOKEN.encode(), hashlib.sha256).digest()
    calculated_hash = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()

    if not hmac.compare_digest(calculated_hash, hash_str):
        return False, {}

    if settings.INIT_DATA_MAX_AGE_SECONDS > 0:
        try:
            auth_date = int(parsed_data.get("auth_date", "0"))
        except ValueError:
            return False, {}
        if time.time() - auth_date > settings.INIT_DATA_MAX_AGE_SECONDS:
            return False, {}

    return True, parsed_data


def mini_app_link(start_param: str | None = None) -> str:
    """Прямая ссылка на Mini App, опционально с параметром запуска."""
    link = f"https://t.me/{settings.TELEGRAM_BOT_USERNAME}/{settings.MINI_APP_SHORT_NAME}"
    if start_param:
        link += f"?startapp={start_param}"
    return link


def parse_referral_start_param(start_param: str | None) -> str | None:
    """Достает код из параметра запуска вида 'ref_ABC12345'."""
    if not start_param or not start_param.startswith("ref_"):
        return None
    code = start_param[len("ref_"):].strip()
    return code or None
