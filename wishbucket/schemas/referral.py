# wishbucket/schemas/referral.py
from datetime import datetime
from pydantic import BaseModel, Field

from wishbucket.schemas.user import PublicUser


class ApplyReferralRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)

class ApplyReferralResult(BaseModel):
    success: bool = True
    bonus_credited: int # Сколько баллов получил применивший код

class ReferralStats(BaseModel):
    referral_code: str
    total_referrals: int     # Счетчик в профиле
    active_referrals: int    # Сколько записей о применении кода
    total_bonus_earned: int  # Сколько всего баллов заработано на приглашениях
    referral_link: str

class ReferralEntry(BaseModel):
    id: int
    referred_user_id: int
    referred_user: PublicUser
    bonus_earned: int
    created_at: datetime

    class Config:
        from_attributes = True
