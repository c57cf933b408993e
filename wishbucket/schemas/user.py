# wishbucket/schemas/user.py
from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import BaseModel


# Схема для данных, которые мы получаем от фронтенда
class TelegramLoginData(BaseModel):
    init_data: str # Та самая строка initData от Telegram

# Схема для ответа с токеном
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class PublicUser(BaseModel):
    """То, что видят о пользователе другие."""
    id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    photo_url: Optional[str] = None

    class Config:
        from_attributes = True

# Полный профиль текущего пользователя
class UserProfile(PublicUser):
    birthday: date | None = None
    referral_code: str
    referrals: int
    bonus_points: int
    premium_status: Literal["free", "premium"]
    premium_expires_at: datetime | None = None
    created_at: datetime
    friends: List[int] = []

# Данные, которые пользователь может обновить
class UserUpdate(BaseModel):
    birthday: date | None = None

# Ближайший день рождения того, на кого подписан пользователь
class BirthdayReminder(BaseModel):
    friend_id: int
    friend_name: str
    username: Optional[str] = None
    photo_url: Optional[str] = None
    birthday: date
    next_birthday: date
    days_until: int
