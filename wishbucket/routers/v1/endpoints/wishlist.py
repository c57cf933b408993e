# wishbucket/routers/v1/endpoints/wishlist.py
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.orm import Session

from wishbucket.bot.services import notification as bot_notification_service
from wishbucket.dependencies import get_current_user, get_db
from wishbucket.models.user import User
from wishbucket.schemas.wishlist import (
    ShareLink,
    Wishlist,
    WishlistCreate,
    WishlistItem,
    WishlistItemCreate,
    WishlistItemUpdate,
    WishlistUpdate,
)
from wishbucket.services import wishlist as wishlist_service

router = APIRouter()

# --- Вишлисты ---

@router.get("/wishlists", response_model=List[Wishlist])
def list_my_wishlists(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return wishlist_service.get_my_wishlists(db, current_user)


@router.post("/wishlists", response_model=Wishlist, status_code=status.HTTP_201_CREATED)
def create_wishlist(
    data: WishlistCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    wishlist, notification_ids = wishlist_service.create_wishlist(db, current_user, data)
    if notification_ids:
        background_tasks.add_task(bot_notification_service.dispatch_many_task, notification_ids)
    return wishlist


@router.get("/wishlists/{wishlist_id}", response_model=Wishlist)
def read_wishlist(
    wishlist_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return wishlist_service.get_wishlist(db, current_user, wishlist_id)


@router.put("/wishlists/{wishlist_id}", response_model=Wishlist)
def update_wishlist(
    wishlist_id: int,
    data: WishlistUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return wishlist_service.update_wishlist(db, current_user, wishlist_id, data)


@router.delete("/wishlists/{wishlist_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_wishlist(
    wishlist_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    wishlist_service.delete_wishlist(db, current_user, wishlist_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/wishlists/{wishlist_id}/share-link", response_model=ShareLink)
def get_share_link(
    wishlist_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return wishlist_service.get_share_link(db, current_user, wishlist_id)

# --- Подарки ---

@router.post("/wishlists/{wishlist_id}/items", response_model=WishlistItem, status_code=status.HTTP_201_CREATED)
def add_item(
    wishlist_id: int,
    data: WishlistItemCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Добавляет подарок. Ссылка на магазин автоматически становится партнерской."""
    item, notification_ids = wishlist_service.add_item(db, current_user, wishlist_id, data)
    if notification_ids:
        background_tasks.add_task(bot_notification_service.dispatch_many_task, notification_ids)
    return item


@router.put("/items/{item_id}", response_model=WishlistItem)
def update_item(
    item_id: int,
    data: WishlistItemUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return wishlist_service.update_item(db, current_user, item_id, data)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    wishlist_service.delete_item(db, current_user, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/items/{item_id}/reserve", response_model=WishlistItem)
def reserve_item(
    item_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item, notification_id = wishlist_service.reserve_item(db, current_user, item_id)
    background_tasks.add_task(bot_notification_service.dispatch_notification_task, notification_id)
    return item


@router.post("/items/{item_id}/cancel-reservation", response_model=WishlistItem)
def cancel_reservation(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return wishlist_service.cancel_reservation(db, current_user, item_id)


@router.post("/items/{item_id}/purchase", response_model=WishlistItem)
def purchase_item(
    item_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    item, notification_id = wishlist_service.purchase_item(db, current_user, item_id)
    background_tasks.add_task(bot_notification_service.dispatch_notification_task, notification_id)
    return item
