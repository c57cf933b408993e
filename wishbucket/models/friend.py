# wishbucket/models/friend.py
from sqlalchemy import BIGINT, Column, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import relationship
from wishbucket.db.session import Base
from .user import User

class Friend(Base):
    """Направленная подписка: user_id подписан на friend_id."""
    __tablename__ = "friends"
    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friends_user_friend"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, index=True)
    friend_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    follower = relationship(User, foreign_keys=[user_id])
    friend = relationship(User, foreign_keys=[friend_id])
