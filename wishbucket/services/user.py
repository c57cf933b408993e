# wishbucket/services/user.py
import logging
from datetime import date, datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from wishbucket.crud import friend as crud_friend
from wishbucket.crud import user as crud_user
from wishbucket.crud import wishlist as crud_wishlist
from wishbucket.models.user import User
from wishbucket.schemas.user import BirthdayReminder, PublicUser, UserProfile, UserUpdate
from wishbucket.schemas.wishlist import Wishlist

logger = logging.getLogger(__name__)

BIRTHDAY_REMINDER_DAYS = 7


def get_user_profile(db: Session, current_user: User) -> UserProfile:
    """Профиль текущего пользователя вместе с ID тех, на кого он подписан."""
    profile = UserProfile.model_validate(current_user)
    profile.friends = crud_friend.get_following_ids(db, user_id=current_user.id)
    return profile


def update_user_profile(db: Session, current_user: User, user_update_data: UserUpdate) -> UserProfile:
    update_data_dict = user_update_data.model_dump(exclude_unset=True)

    if "birthday" in update_data_dict:
        crud_user.update_birthday(db, current_user, update_data_dict["birthday"])
        logger.info(f"User {current_user.id} updated birthday.")

    return get_user_profile(db, current_user)


def get_public_user(db: Session, user_id: int) -> PublicUser:
    user = crud_user.get_user_by_id(db, user_id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return PublicUser.model_validate(user)


def get_public_wishlists(db: Session, user_id: int) -> list[Wishlist]:
    """Публичные вишлисты другого пользователя."""
    if not crud_user.get_user_by_id(db, user_id=user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return crud_wishlist.get_user_wishlists(db, user_id=user_id, public_only=True)


def search_users(db: Session, current_user: User, query: str) -> list[PublicUser]:
    if not query.strip():
        return []
    users = crud_user.find_users(db, query=query, exclude_id=current_user.id)
    return [PublicUser.model_validate(u) for u in users]


# --- Дни рождения ---

def next_birthday(birthday: date, today: date) -> date:
    """Ближайший день рождения, включая сегодняшний. 29 февраля в невисокосный год - это 28 февраля."""
    for year in (today.year, today.year + 1):
        try:
            candidate = birthday.replace(year=year)
        except ValueError:
            candidate = date(year, 2, 28)
        if candidate >= today:
            return candidate
    return candidate


def get_birthday_reminders(db: Session, current_user: User, today: date | None = None) -> list[BirthdayReminder]:
    """Дни рождения тех, на кого подписан пользователь, в ближайшие BIRTHDAY_REMINDER_DAYS дней."""
    today = today or datetime.now(timezone.utc).date()
    reminders = []
    for follow in crud_friend.get_following(db, user_id=current_user.id):
        friend = follow.friend
        if not friend.birthday:
            continue
        upcoming = next_birthday(friend.birthday, today)
        days_until = (upcoming - today).days
        if days_until > BIRTHDAY_REMINDER_DAYS:
            continue
        name = " ".join(filter(None, [friend.first_name, friend.last_name])) or friend.username or "Someone"
        reminders.append(BirthdayReminder(
            friend_id=friend.id,
            friend_name=name,
            username=friend.username,
            photo_url=friend.photo_url,
            birthday=friend.birthday,
            next_birthday=upcoming,
            days_until=days_until,
        ))
    return sorted(reminders, key=lambda r: (r.days_until, r.friend_name))
