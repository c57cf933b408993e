# wishbucket/models/secret_santa.py
from sqlalchemy import BIGINT, Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship
from wishbucket.db.session import Base
from .user import User


class SecretSanta(Base):
    __tablename__ = "secret_santa"

    id = Column(Integer, primary_key=True, index=True)
    organizer_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    budget = Column(Numeric(12, 2), nullable=True)
    exchange_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, server_default='true')

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    organizer = relationship(User)
    participants = relationship(
        "SecretSantaParticipant",
        back_populates="secret_santa",
        cascade="all, delete-orphan",
        order_by="SecretSantaParticipant.id",
    )


class SecretSantaParticipant(Base):
    __tablename__ = "secret_santa_participants"
    __table_args__ = (
        UniqueConstraint("secret_santa_id", "user_id", name="uq_secret_santa_participants_santa_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    secret_santa_id = Column(Integer, ForeignKey("secret_santa.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, index=True)
    wishlist_id = Column(Integer, ForeignKey("wishlists.id", ondelete="SET NULL"), nullable=True)

    # Кому дарит этот участник. Заполняется при жеребьевке
    assigned_to = Column(BIGINT, ForeignKey("users.id"), nullable=True)
    has_drawn = Column(Boolean, default=False, nullable=False, server_default='false')

    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    secret_santa = relationship(SecretSanta, back_populates="participants")
    user = relationship(User, foreign_keys=[user_id])
