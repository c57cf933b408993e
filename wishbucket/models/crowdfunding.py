# wishbucket/models/crowdfunding.py
from sqlalchemy import BIGINT, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, func
from sqlalchemy.orm import relationship
from wishbucket.db.session import Base
from .user import User
from .wishlist import WishlistItem


class Crowdfunding(Base):
    """Совместный сбор денег на один подарок. Не больше одного сбора на подарок."""
    __tablename__ = "crowdfunding"
    __table_args__ = (
        CheckConstraint("target_amount > 0", name="ck_crowdfunding_target_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("wishlist_items.id", ondelete="CASCADE"), nullable=False, unique=True)

    target_amount = Column(Numeric(12, 2), nullable=False)
    # Сумма взносов. Меняется только атомарным UPDATE вместе с записью взноса
    current_amount = Column(Numeric(12, 2), default=0, nullable=False, server_default='0')
    is_active = Column(Boolean, default=True, nullable=False, server_default='true')

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    item = relationship(WishlistItem)
    contributors = relationship(
        "CrowdfundingContributor",
        back_populates="crowdfunding",
        cascade="all, delete-orphan",
        order_by="CrowdfundingContributor.id",
    )


class CrowdfundingContributor(Base):
    __tablename__ = "crowdfunding_contributors"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_crowdfunding_contributors_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    crowdfunding_id = Column(Integer, ForeignKey("crowdfunding.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    contributed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    crowdfunding = relationship(Crowdfunding, back_populates="contributors")
    user = relationship(User)
