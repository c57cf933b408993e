# wishbucket/crud/gift_hint.py
from sqlalchemy.orm import Session
from wishbucket.models.gift_hint import HINT_ACTIVE, GiftHint


def get_hint(db: Session, user_id: int, hint_id: int) -> GiftHint | None:
    """Подсказка, только если она принадлежит пользователю."""
    return db.query(GiftHint).filter(GiftHint.id == hint_id, GiftHint.user_id == user_id).first()

def get_hints(db: Session, user_id: int, status: str | None = None, limit: int | None = None) -> list[GiftHint]:
    query = db.query(GiftHint).filter(GiftHint.user_id == user_id)
    if status:
        query = query.filter(GiftHint.status == status)
    query = query.order_by(GiftHint.created_at.desc(), GiftHint.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()

def get_active_hints(db: Session, user_id: int, limit: int | None = None) -> list[GiftHint]:
    return get_hints(db, user_id=user_id, status=HINT_ACTIVE, limit=limit)

def create_hint(db: Session, user_id: int, **fields) -> GiftHint:
    db_hint = GiftHint(user_id=user_id, **fields)
    db.add(db_hint)
    db.commit()
    db.refresh(db_hint)
    return db_hint

def delete_hint(db: Session, hint: GiftHint):
    db.delete(hint)
    db.commit()
