# wishbucket/models/wishlist.py
from sqlalchemy import BIGINT, Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship
from wishbucket.db.session import Base
from .user import User

ITEM_AVAILABLE = "available"
ITEM_RESERVED = "reserved"
ITEM_PURCHASED = "purchased"


class Wishlist(Base):
    __tablename__ = "wishlists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    event_date = Column(Date, nullable=True)

    is_public = Column(Boolean, default=True, nullable=False, server_default='true')
    is_default = Column(Boolean, default=False, nullable=False, server_default='false')

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship(User)
    items = relationship(
        "WishlistItem",
        back_populates="wishlist",
        cascade="all, delete-orphan",
        order_by="WishlistItem.id.desc()",
    )


class WishlistItem(Base):
    __tablename__ = "wishlist_items"

    id = Column(Integer, primary_key=True, index=True)
    wishlist_id = Column(Integer, ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String, nullable=True)
    original_url = Column(String, nullable=True)
    affiliate_url = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    price = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(3), default="USD", nullable=False, server_default="USD")

    # 'low', 'medium', 'high'
    priority = Column(String, default="medium", nullable=False, server_default="medium")
    # 'available' -> 'reserved' -> 'purchased'
    status = Column(String, default=ITEM_AVAILABLE, nullable=False, server_default=ITEM_AVAILABLE)

    reserved_by = Column(BIGINT, ForeignKey("users.id"), nullable=True)
    purchased_by = Column(BIGINT, ForeignKey("users.id"), nullable=True)
    reserved_at = Column(DateTime(timezone=True), nullable=True)
    purchased_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    wishlist = relationship(Wishlist, back_populates="items")
