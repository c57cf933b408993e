# wishbucket/models/notification.py
from sqlalchemy import BIGINT, JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship
from wishbucket.db.session import Base
from .user import User

DELIVERY_PENDING = "pending"
DELIVERY_SENT = "sent"
DELIVERY_FAILED = "failed"
DELIVERY_SKIPPED = "skipped"


class Notification(Base):
    """
    Уведомление во "входящих" пользователя.
    Одновременно служит записью outbox: строка пишется в той же транзакции,
    что и основное изменение, а в Telegram доставляется отдельно.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, index=True)

    # 'referral_signup', 'new_follower', 'item_reserved', 'wishlist_shared', ...
    type = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    data = Column(JSON, nullable=True)

    is_read = Column(Boolean, default=False, nullable=False, server_default='false')
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    delivery_status = Column(String, default=DELIVERY_PENDING, nullable=False, server_default=DELIVERY_PENDING, index=True)
    delivery_attempts = Column(Integer, default=0, nullable=False, server_default='0')
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship(User)
