# wishbucket/dependencies.py

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from wishbucket.core.config import settings
from wishbucket.core.exceptions import NotAuthenticated
from wishbucket.db.session import SessionLocal
from wishbucket.models.user import User

logger = logging.getLogger(__name__)

# auto_error=False: отсутствие токена превращаем в наш NotAuthenticated (401)
bearer_scheme = HTTPBearer(auto_error=False)

# --- Управление сессией БД ---
def get_db_session_instance() -> Session:
    """Создает и возвращает экземпляр сессии БД."""
    return SessionLocal()

def get_db() -> Iterator[Session]:
    """
    Основная зависимость FastAPI для получения сессии БД.
    """
    db = get_db_session_instance()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def get_db_context() -> Iterator[Session]:
    """
    Контекстный менеджер для получения сессии БД вне FastAPI (для бота и фоновых задач).
    """
    db = get_db_session_instance()
    try:
        yield db
    finally:
        db.close()

# --- Аутентификация ---

def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Требует валидный токен. Если его нет или он невалиден - NotAuthenticated (401).
    """
    if credentials is None:
        logger.debug("No bearer token provided.")
        raise NotAuthenticated("User not authenticated")

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            logger.warning("Token payload is missing 'sub' (user_id).")
            raise NotAuthenticated()
    except JWTError as e:
        logger.warning(f"JWT Error during token decoding: {e}")
        raise NotAuthenticated()

    try:
        user = db.query(User).filter(User.id == int(user_id)).first()
    except ValueError:
        raise NotAuthenticated()
    if user is None:
        logger.warning(f"User with ID {user_id} from token not found in DB.")
        raise NotAuthenticated()

    request.state.user = user
    return user
