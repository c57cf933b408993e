# wishbucket/core/limiter.py

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from wishbucket.core.config import settings

# --- Функция-ключ для идентификации запросов ---

def key_func(request: Request) -> str:
    """
    Определяет, как идентифицировать запрос для применения лимита.
    Приоритет: ID пользователя (если авторизован) -> IP-адрес.
    """
    # Пользователь мог уже быть извлечен зависимостью get_current_user
    user = getattr(request.state, "user", None)

    if user is not None and user.id:
        return str(user.id)

    return get_remote_address(request)

# --- Создание и конфигурация лимитера ---

# 'moving-window' - гибкий алгоритм, счетчики храним в Redis
limiter = Limiter(
    key_func=key_func,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI or settings.REDIS_URL,
    strategy="moving-window",
)
