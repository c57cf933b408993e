# wishbucket/crud/secret_santa.py
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload
from wishbucket.models.secret_santa import SecretSanta, SecretSantaParticipant


def get_secret_santa(db: Session, santa_id: int) -> SecretSanta | None:
    return db.query(SecretSanta).options(selectinload(SecretSanta.participants)).filter(
        SecretSanta.id == santa_id
    ).first()

def get_user_secret_santas(db: Session, user_id: int) -> list[SecretSanta]:
    """Игры, которые пользователь организовал или в которых участвует."""
    participant_of = db.query(SecretSantaParticipant.secret_santa_id).filter(
        SecretSantaParticipant.user_id == user_id
    )
    return db.query(SecretSanta).options(selectinload(SecretSanta.participants)).filter(
        or_(SecretSanta.organizer_id == user_id, SecretSanta.id.in_(participant_of))
    ).order_by(SecretSanta.created_at.desc(), SecretSanta.id.desc()).all()

def get_participant(db: Session, santa_id: int, user_id: int) -> SecretSantaParticipant | None:
    return db.query(SecretSantaParticipant).filter(
        SecretSantaParticipant.secret_santa_id == santa_id,
        SecretSantaParticipant.user_id == user_id,
    ).first()

def build_secret_santa(db: Session, organizer_id: int, **fields) -> SecretSanta:
    """Требует внешнего вызова db.commit()."""
    db_santa = SecretSanta(organizer_id=organizer_id, **fields)
    db.add(db_santa)
    return db_santa

def build_participant(db: Session, santa_id: int, user_id: int, wishlist_id: int | None = None) -> SecretSantaParticipant:
    """Требует внешнего вызова db.commit()."""
    db_participant = SecretSantaParticipant(secret_santa_id=santa_id, user_id=user_id, wishlist_id=wishlist_id)
    db.add(db_participant)
    return db_participant
