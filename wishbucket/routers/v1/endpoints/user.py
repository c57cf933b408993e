# wishbucket/routers/v1/endpoints/user.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wishbucket.dependencies import get_current_user, get_db
from wishbucket.models.user import User
from wishbucket.schemas.user import BirthdayReminder, PublicUser, UserProfile, UserUpdate
from wishbucket.schemas.wishlist import Wishlist
from wishbucket.services import user as user_service

router = APIRouter()


@router.get("/users/me", response_model=UserProfile)
def read_users_me(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return user_service.get_user_profile(db, current_user)


@router.put("/users/me", response_model=UserProfile)
def update_users_me(
    user_update_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Обновление информации о текущем пользователе.
    Имя и аватар приходят из Telegram, поэтому менять можно только дату рождения.
    """
    return user_service.update_user_profile(db, current_user, user_update_data)


@router.get("/users/me/birthday-reminders", response_model=List[BirthdayReminder])
def read_birthday_reminders(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Дни рождения друзей на ближайшую неделю, от ближайшего."""
    return user_service.get_birthday_reminders(db, current_user)


@router.get("/users/search", response_model=List[PublicUser])
def search_users(
    q: str = Query(..., min_length=1, max_length=64),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Поиск пользователей по юзернейму, имени или Telegram ID."""
    return user_service.search_users(db, current_user, q)


@router.get("/users/{user_id}", response_model=PublicUser)
def read_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return user_service.get_public_user(db, user_id)


@router.get("/users/{user_id}/wishlists", response_model=List[Wishlist])
def read_user_wishlists(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Публичные вишлисты пользователя. Для самого себя - тоже только публичные."""
    return user_service.get_public_wishlists(db, user_id)
