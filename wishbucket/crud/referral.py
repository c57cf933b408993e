# wishbucket/crud/referral.py
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from wishbucket.models.referral import Referral

def build_referral(db: Session, referrer_id: int, referred_id: int, bonus_earned: int) -> Referral:
    """
    Создает запись о применении кода и добавляет ее в сессию.
    Требует внешнего вызова db.commit().
    """
    db_referral = Referral(referrer_id=referrer_id, referred_id=referred_id, bonus_earned=bonus_earned)
    db.add(db_referral)
    return db_referral

def get_referral_by_referred_id(db: Session, referred_id: int) -> Referral | None:
    """Находит запись по ID пользователя, применившего код."""
    return db.query(Referral).filter(Referral.referred_id == referred_id).first()

def count_referrals_by_referrer(db: Session, referrer_id: int) -> int:
    return db.query(Referral).filter(Referral.referrer_id == referrer_id).count()

def get_total_bonus_earned(db: Session, referrer_id: int) -> int:
    """Сколько всего баллов владелец кода получил за приглашения."""
    total = db.query(func.sum(Referral.bonus_earned)).filter(
        Referral.referrer_id == referrer_id
    ).scalar()
    return total or 0

def get_referrals_by_referrer(db: Session, referrer_id: int) -> list[Referral]:
    """Все применения кода пользователя, от новых к старым, вместе с профилями приглашенных."""
    return db.query(Referral).options(joinedload(Referral.referred)).filter(
        Referral.referrer_id == referrer_id
    ).order_by(Referral.created_at.desc(), Referral.id.desc()).all()
