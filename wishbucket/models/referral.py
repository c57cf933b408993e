# wishbucket/models/referral.py
from sqlalchemy import BIGINT, Column, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import relationship
from wishbucket.db.session import Base

class Referral(Base):
    """Запись о применении реферального кода. Создается один раз и больше не меняется."""
    __tablename__ = "referrals"
    id = Column(Integer, primary_key=True, index=True)

    # Владелец кода
    referrer_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, index=True)
    # Тот, кто применил код. Уникальность гарантирует одно применение на пользователя
    referred_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, unique=True)

    # Сколько баллов получил владелец кода
    bonus_earned = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    referrer = relationship("User", foreign_keys=[referrer_id], back_populates="redemptions")
    referred = relationship("User", foreign_keys=[referred_id], back_populates="referrer_link")
