# wishbucket/crud/user.py
from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session
from wishbucket.models.user import User


def get_user_by_id(db: Session, user_id: int) -> User | None:
    """Получает пользователя по его Telegram ID (он же первичный ключ)."""
    return db.query(User).filter(User.id == user_id).first()

def get_user_for_update(db: Session, user_id: int) -> User | None:
    """Получает пользователя и блокирует его строку до конца транзакции."""
    return db.query(User).filter(User.id == user_id).with_for_update().first()

def get_user_by_referral_code(db: Session, code: str) -> User | None:
    return db.query(User).filter(User.referral_code == code).first()

def get_user_by_username(db: Session, username: str) -> User | None:
    """Юзернеймы в Telegram нечувствительны к регистру."""
    return db.query(User).filter(func.lower(User.username) == username.lstrip("@").lower()).first()

def build_user(db: Session, user_id: int, referral_code: str, profile: dict) -> User:
    """
    Создает объект пользователя и добавляет его в сессию.
    Требует внешнего вызова db.commit().
    """
    db_user = User(
        id=user_id,
        referral_code=referral_code,
        username=profile.get("username"),
        first_name=profile.get("first_name"),
        last_name=profile.get("last_name"),
        photo_url=profile.get("photo_url"),
        language_code=profile.get("language_code"),
    )
    db.add(db_user)
    return db_user

def update_display_profile(db: Session, user: User, profile: dict) -> User:
    """Обновляет отображаемые данные (имя, юзернейм, аватар) из сессии Telegram."""
    changed = False
    for field in ("username", "first_name", "last_name", "photo_url", "language_code"):
        value = profile.get(field)
        if value is not None and getattr(user, field) != value:
            setattr(user, field, value)
            changed = True
    if changed:
        db.commit()
        db.refresh(user)
    return user

def update_birthday(db: Session, user: User, birthday) -> User:
    user.birthday = birthday
    db.commit()
    db.refresh(user)
    return user

def increment_counters(db: Session, user_id: int, bonus_points: int = 0, referrals: int = 0):
    """
    Атомарно увеличивает счетчики пользователя одним UPDATE.
    Требует внешнего вызова db.commit().
    """
    values = {}
    if bonus_points:
        values["bonus_points"] = User.bonus_points + bonus_points
    if referrals:
        values["referrals"] = User.referrals + referrals
    if not values:
        return
    db.execute(update(User).where(User.id == user_id).values(**values))

def set_bot_accessible(db: Session, user: User, accessible: bool):
    user.bot_accessible = accessible
    db.add(user)
    db.commit()

def find_users(db: Session, query: str, exclude_id: int | None = None, limit: int = 20) -> list[User]:
    """Ищет пользователей по юзернейму, имени или ID."""
    search_query = f"%{query.strip().lstrip('@')}%"

    filter_conditions = [
        User.username.ilike(search_query),
        User.first_name.ilike(search_query),
        User.last_name.ilike(search_query),
    ]

    if query.strip().isdigit():
        filter_conditions.append(User.id == int(query.strip()))

    q = db.query(User).filter(or_(*filter_conditions))
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.order_by(User.id).limit(limit).all()
