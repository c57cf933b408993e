# wishbucket/models/gift_hint.py
from sqlalchemy import BIGINT, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship
from wishbucket.db.session import Base
from .user import User

HINT_ACTIVE = "active"
HINT_PURCHASED = "purchased"
HINT_ARCHIVED = "archived"


class GiftHint(Base):
    """
    Подсказка к подарку: сообщение, которое пользователь переслал боту
    из переписки с кем-то ("хочу такие наушники").
    """
    __tablename__ = "gift_hints"

    id = Column(Integer, primary_key=True, index=True)
    # Кто сохранил подсказку
    user_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, index=True)

    # О ком подсказка. ID известен, только если автор переслан не анонимно
    about_user_id = Column(BIGINT, nullable=True)
    about_name = Column(String, nullable=False)
    about_username = Column(String, nullable=True)

    hint_text = Column(Text, nullable=True)
    # 'text', 'photo', 'voice', 'video', 'video_note', 'document'
    message_type = Column(String, default="text", nullable=False, server_default="text")
    media_file_id = Column(String, nullable=True)

    telegram_message_id = Column(BIGINT, nullable=True)
    telegram_chat_id = Column(BIGINT, nullable=True)
    forward_date = Column(DateTime(timezone=True), nullable=True)

    # 'active', 'purchased', 'archived'
    status = Column(String, default=HINT_ACTIVE, nullable=False, server_default=HINT_ACTIVE, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship(User)
