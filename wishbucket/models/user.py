# wishbucket/models/user.py

from sqlalchemy import BIGINT, Boolean, CheckConstraint, Column, Date, DateTime, Integer, String, func
from sqlalchemy.orm import relationship
from .referral import Referral
from wishbucket.db.session import Base

PREMIUM_FREE = "free"
PREMIUM_PREMIUM = "premium"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("bonus_points >= 0", name="ck_users_bonus_points_non_negative"),
        CheckConstraint("referrals >= 0", name="ck_users_referrals_non_negative"),
    )

    # Telegram ID - внешний и неизменяемый, поэтому он же первичный ключ
    id = Column(BIGINT, primary_key=True, autoincrement=False)

    username = Column(String, nullable=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    language_code = Column(String, nullable=True)

    birthday = Column(Date, nullable=True)

    referral_code = Column(String, unique=True, index=True, nullable=False)
    referrals = Column(Integer, default=0, nullable=False, server_default='0')
    bonus_points = Column(Integer, default=0, nullable=False, server_default='0')

    premium_status = Column(String, default=PREMIUM_FREE, nullable=False, server_default=PREMIUM_FREE)
    premium_expires_at = Column(DateTime(timezone=True), nullable=True)

    bot_accessible = Column(Boolean, default=True, nullable=False, server_default='true')

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Кто пригласил этого пользователя
    referrer_link = relationship("Referral", foreign_keys="Referral.referred_id", back_populates="referred", uselist=False)
    # Кого пригласил этот пользователь
    redemptions = relationship("Referral", foreign_keys="Referral.referrer_id", back_populates="referrer")
