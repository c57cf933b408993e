# wishbucket/crud/friend.py
from sqlalchemy.orm import Session, joinedload
from wishbucket.models.friend import Friend

def get_follow(db: Session, user_id: int, friend_id: int) -> Friend | None:
    return db.query(Friend).filter(Friend.user_id == user_id, Friend.friend_id == friend_id).first()

def build_follow(db: Session, user_id: int, friend_id: int) -> Friend:
    """Требует внешнего вызова db.commit()."""
    db_friend = Friend(user_id=user_id, friend_id=friend_id)
    db.add(db_friend)
    return db_friend

def delete_follow(db: Session, user_id: int, friend_id: int) -> int:
    deleted = db.query(Friend).filter(
        Friend.user_id == user_id, Friend.friend_id == friend_id
    ).delete(synchronize_session=False)
    db.commit()
    return deleted

def get_following(db: Session, user_id: int) -> list[Friend]:
    """На кого подписан пользователь."""
    return db.query(Friend).options(joinedload(Friend.friend)).filter(
        Friend.user_id == user_id
    ).order_by(Friend.created_at.desc(), Friend.id.desc()).all()

def get_followers(db: Session, user_id: int) -> list[Friend]:
    """Кто подписан на пользователя."""
    return db.query(Friend).options(joinedload(Friend.follower)).filter(
        Friend.friend_id == user_id
    ).order_by(Friend.created_at.desc(), Friend.id.desc()).all()

def get_following_ids(db: Session, user_id: int) -> list[int]:
    return [row[0] for row in db.query(Friend.friend_id).filter(Friend.user_id == user_id).all()]

def get_follower_ids(db: Session, user_id: int) -> list[int]:
    return [row[0] for row in db.query(Friend.user_id).filter(Friend.friend_id == user_id).all()]
