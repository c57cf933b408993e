# wishbucket/services/crowdfunding.py
"""
Совместный сбор на подарок. Сбор открывает владелец подарка, вносить
деньги могут все, кто видит подарок. Когда собранная сумма достигает цели,
сбор закрывается.
"""
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wishbucket.crud import crowdfunding as crud_crowdfunding
from wishbucket.crud import notification as crud_notification
from wishbucket.models.crowdfunding import Crowdfunding
from wishbucket.models.user import User
from wishbucket.models.wishlist import ITEM_PURCHASED
from wishbucket.schemas.crowdfunding import ContributionCreate, CrowdfundingCreate
from wishbucket.services import wishlist as wishlist_service

logger = logging.getLogger(__name__)


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Crowdfunding not found")


def get_crowdfunding(db: Session, user: User, item_id: int) -> Crowdfunding:
    wishlist_service.get_visible_item(db, user, item_id)
    crowdfunding = crud_crowdfunding.get_by_item_id(db, item_id=item_id)
    if not crowdfunding:
        raise _not_found()
    return crowdfunding


def create_crowdfunding(db: Session, user: User, item_id: int, data: CrowdfundingCreate) -> Crowdfunding:
    item = wishlist_service.get_own_item(db, user, item_id)
    if item.status == ITEM_PURCHASED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Item is already purchased")
    if crud_crowdfunding.get_by_item_id(db, item_id=item.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Crowdfunding already exists for this item")

    crowdfunding = crud_crowdfunding.build_crowdfunding(db, item_id=item.id, target_amount=data.target_amount)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Crowdfunding already exists for this item")
    db.refresh(crowdfunding)

    logger.info(f"User {user.id} opened crowdfunding {crowdfunding.id} for item {item.id} (target: {data.target_amount}).")
    return crowdfunding


def contribute(db: Session, user: User, item_id: int, data: ContributionCreate) -> tuple[Crowdfunding, int]:
    """
    Записывает взнос и увеличивает собранную сумму в одной транзакции.
    Возвращает сбор и ID уведомления владельцу подарка.
    """
    item = wishlist_service.get_visible_item(db, user, item_id)
    if item.wishlist.user_id == user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot contribute to your own item")

    crowdfunding = crud_crowdfunding.get_by_item_id_for_update(db, item_id=item.id)
    if not crowdfunding:
        db.rollback()
        raise _not_found()
    if not crowdfunding.is_active:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Crowdfunding is closed")

    crud_crowdfunding.build_contribution(db, crowdfunding_id=crowdfunding.id, user_id=user.id, amount=data.amount)
    crud_crowdfunding.increment_amount(db, crowdfunding_id=crowdfunding.id, amount=data.amount)
    db.flush()
    db.refresh(crowdfunding)

    completed = crowdfunding.current_amount >= crowdfunding.target_amount
    if completed:
        crowdfunding.is_active = False

    notification = crud_notification.build_notification(
        db,
        user_id=item.wishlist.user_id,
        type="crowdfunding_contribution",
        title="🎉 Crowdfunding Complete!" if completed else "💰 New Contribution!",
        message=(
            f'Your friends collected the full amount for "{item.name}"'
            if completed
            else f'Someone contributed {data.amount} to "{item.name}"'
        ),
        data={"wishlist_id": item.wishlist_id, "item_id": item.id, "crowdfunding_id": crowdfunding.id},
    )
    db.commit()
    db.refresh(crowdfunding)

    logger.info(f"User {user.id} contributed {data.amount} to crowdfunding {crowdfunding.id} (completed: {completed}).")
    return crowdfunding, notification.id
