# wishbucket/services/referral.py
"""
Реферальная программа: выдача кодов, проверка права на применение кода
и начисление бонусов.

Проверка (guard) и начисление (ledger) идут в одной транзакции:
строка применяющего блокируется SELECT ... FOR UPDATE, а уникальный индекс
referrals.referred_id не дает записать второе применение даже при гонке.
"""
import logging
import secrets
import string

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wishbucket.core.config import settings
from wishbucket.core.exceptions import (
    AlreadyRedeemed,
    InvalidCode,
    PersistenceFailure,
    SelfReferralNotAllowed,
)
from wishbucket.crud import notification as crud_notification
from wishbucket.crud import referral as crud_referral
from wishbucket.crud import user as crud_user
from wishbucket.models.notification import Notification
from wishbucket.models.user import User
from wishbucket.schemas.referral import ApplyReferralResult, ReferralEntry, ReferralStats
from wishbucket.schemas.user import PublicUser
from wishbucket.utils.telegram import mini_app_link

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits

# --- Реестр кодов ---

def generate_code(length: int | None = None) -> str:
    """Короткий код из заглавных латинских букв и цифр, например 'ABC12345'."""
    length = length or settings.REFERRAL_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))

def normalize_code(code: str) -> str:
    return code.strip().upper()

def lookup_issuer(db: Session, code: str) -> User | None:
    """Владелец кода или None."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    return crud_user.get_user_by_referral_code(db, code=normalized)

# --- Проверка права на применение ---

def check_redemption(db: Session, redeemer_id: int, code: str) -> User:
    """
    Проверяет, можно ли применить код. Первая же неудачная проверка
    прерывает процесс, ничего не изменив в базе.
    Возвращает владельца кода.
    """
    # Блокируем строку применяющего: параллельные попытки одного пользователя
    # выстраиваются в очередь до конца транзакции
    crud_user.get_user_for_update(db, redeemer_id)

    issuer = lookup_issuer(db, code)
    if issuer is None:
        raise InvalidCode()

    if issuer.id == redeemer_id:
        raise SelfReferralNotAllowed()

    if crud_referral.get_referral_by_referred_id(db, referred_id=redeemer_id):
        raise AlreadyRedeemed()

    return issuer

# --- Начисление ---

def credit_redemption(db: Session, issuer: User, redeemer: User) -> Notification:
    """
    Записывает применение кода, начисляет баллы обеим сторонам и кладет
    уведомление владельцу кода в outbox. Все - одной транзакцией.
    """
    issuer_id, redeemer_id = issuer.id, redeemer.id
    redeemer_name = redeemer.first_name or "Someone"

    try:
        crud_referral.build_referral(
            db, referrer_id=issuer_id, referred_id=redeemer_id, bonus_earned=settings.REFERRER_BONUS
        )
        # Уникальный индекс проверяется здесь, до изменения балансов
        db.flush()

        crud_user.increment_counters(db, issuer_id, bonus_points=settings.REFERRER_BONUS, referrals=1)
        crud_user.increment_counters(db, redeemer_id, bonus_points=settings.REFERRED_BONUS)

        notification = crud_notification.build_notification(
            db,
            user_id=issuer_id,
            type="referral_signup",
            title="🎉 New Referral!",
            message=f"{redeemer_name} joined using your referral code! You earned {settings.REFERRER_BONUS} bonus points.",
            data={"referred_user_id": redeemer_id, "bonus": settings.REFERRER_BONUS},
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        if crud_referral.get_referral_by_referred_id(db, referred_id=redeemer_id):
            logger.info(f"Concurrent redemption detected for user {redeemer_id}; rejecting duplicate.")
            raise AlreadyRedeemed()
        logger.error(f"Integrity error while crediting referral {issuer_id} -> {redeemer_id}", exc_info=True)
        raise PersistenceFailure("Failed to apply referral code.")
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Database error while crediting referral {issuer_id} -> {redeemer_id}", exc_info=True)
        raise PersistenceFailure("Failed to apply referral code.")

    logger.info(
        f"Referral applied: issuer={issuer_id} (+{settings.REFERRER_BONUS}), "
        f"redeemer={redeemer_id} (+{settings.REFERRED_BONUS})"
    )
    return notification

def apply_referral(db: Session, redeemer: User, code: str) -> tuple[ApplyReferralResult, int]:
    """
    Применяет реферальный код от имени пользователя.
    Возвращает результат и ID уведомления, которое нужно доставить владельцу кода.
    """
    try:
        issuer = check_redemption(db, redeemer_id=redeemer.id, code=code)
    except HTTPException as e:
        # Снимаем блокировку строки, ничего не записав
        db.rollback()
        logger.info(f"Referral code '{code}' rejected for user {redeemer.id}: {e.detail}")
        raise

    notification = credit_redemption(db, issuer=issuer, redeemer=redeemer)
    return ApplyReferralResult(success=True, bonus_credited=settings.REFERRED_BONUS), notification.id

# --- Статистика ---

def get_referral_link(user: User) -> str:
    return mini_app_link(f"ref_{user.referral_code}")

def get_referral_stats(db: Session, user: User) -> ReferralStats:
    """Собирает статистику по реферальной программе для пользователя."""
    return ReferralStats(
        referral_code=user.referral_code,
        total_referrals=user.referrals,
        active_referrals=crud_referral.count_referrals_by_referrer(db, referrer_id=user.id),
        total_bonus_earned=crud_referral.get_total_bonus_earned(db, referrer_id=user.id),
        referral_link=get_referral_link(user),
    )

def get_referrals(db: Session, user: User) -> list[ReferralEntry]:
    return [
        ReferralEntry(
            id=referral.id,
            referred_user_id=referral.referred_id,
            referred_user=PublicUser.model_validate(referral.referred),
            bonus_earned=referral.bonus_earned,
            created_at=referral.created_at,
        )
        for referral in crud_referral.get_referrals_by_referrer(db, referrer_id=user.id)
    ]
