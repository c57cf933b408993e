# wishbucket/services/auth.py

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from fastapi import HTTPException
from jose import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wishbucket.core.config import settings
from wishbucket.core.exceptions import NotAuthenticated, PersistenceFailure
from wishbucket.crud import user as crud_user
from wishbucket.models.user import User
from wishbucket.schemas.user import Token
from wishbucket.services import referral as referral_service
from wishbucket.utils.telegram import parse_referral_start_param, validate_init_data

logger = logging.getLogger(__name__)

# Сколько раз пробуем подобрать свободный реферальный код
MAX_CODE_ATTEMPTS = 5


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Создает JWT токен."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def register_or_get_user(db: Session, user_info: Dict[str, Any]) -> tuple[User, bool]:
    """
    Находит пользователя по Telegram ID или создает нового с уникальным
    реферальным кодом. Возвращает (пользователь, создан_ли_сейчас).
    """
    telegram_id = user_info.get("id")
    if not telegram_id:
        raise NotAuthenticated("Telegram user id is missing in initData")

    db_user = crud_user.get_user_by_id(db, user_id=telegram_id)
    if db_user:
        return db_user, False

    logger.info(f"User {telegram_id} not found in local DB. Creating new user.")

    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        code = referral_service.generate_code()
        crud_user.build_user(db, user_id=telegram_id, referral_code=code, profile=user_info)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            # Пользователя мог создать параллельный первый вход
            existing = crud_user.get_user_by_id(db, user_id=telegram_id)
            if existing:
                logger.info(f"User {telegram_id} was created concurrently; using existing row.")
                return existing, False
            logger.warning(f"Referral code collision for user {telegram_id} (attempt {attempt}). Retrying.")
            continue

        db_user = crud_user.get_user_by_id(db, user_id=telegram_id)
        logger.info(f"Created user {telegram_id} with referral code {code}.")
        return db_user, True

    logger.error(f"Could not generate a unique referral code for user {telegram_id}.")
    raise PersistenceFailure("Could not create user. Please try again later.")


def authenticate_telegram_user(db: Session, init_data: str) -> tuple[Token, list[int]]:
    """
    Функция для эндпоинта /auth/telegram.
    Валидирует initData, регистрирует/находит пользователя, обновляет профиль,
    применяет реферальный код из start_param и возвращает JWT.
    Второй элемент результата - ID уведомлений для фоновой доставки.
    """
    is_valid, user_data_from_tg = validate_init_data(init_data)
    if not is_valid:
        raise NotAuthenticated("Invalid Telegram initData")

    try:
        user_info = json.loads(user_data_from_tg.get("user", "{}"))
    except json.JSONDecodeError:
        raise NotAuthenticated("Malformed user data in initData")
    if not isinstance(user_info, dict):
        raise NotAuthenticated("Malformed user data in initData")

    db_user, is_new_user = register_or_get_user(db, user_info=user_info)
    if not is_new_user:
        crud_user.update_display_profile(db, db_user, user_info)

    notification_ids = []
    referral_code = parse_referral_start_param(user_data_from_tg.get("start_param"))
    if referral_code:
        try:
            _, notification_id = referral_service.apply_referral(db, redeemer=db_user, code=referral_code)
            notification_ids.append(notification_id)
        except HTTPException as e:
            # Неподходящий код не должен мешать входу
            logger.info(f"Start param referral for user {db_user.id} not applied: {e.detail}")

    access_token = create_access_token(
        data={"sub": str(db_user.id)},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return Token(access_token=access_token), notification_ids
