# wishbucket/services/wishlist.py
"""
Вишлисты и подарки в них.

Статусы подарка:
    available -> reserved      (забронировать)
    reserved  -> available     (снять бронь, только тот, кто бронировал)
    available -> purchased     (купить)
    reserved  -> purchased     (купить, только тот, кто бронировал)
'purchased' - конечный статус. Владелец не может бронировать и покупать свои подарки.
"""
import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from wishbucket.core.config import settings
from wishbucket.crud import friend as crud_friend
from wishbucket.crud import notification as crud_notification
from wishbucket.crud import wishlist as crud_wishlist
from wishbucket.models.user import User
from wishbucket.models.wishlist import (
    ITEM_AVAILABLE,
    ITEM_PURCHASED,
    ITEM_RESERVED,
    Wishlist,
    WishlistItem,
)
from wishbucket.schemas.wishlist import (
    ShareLink,
    WishlistCreate,
    WishlistItemCreate,
    WishlistItemUpdate,
    WishlistUpdate,
)
from wishbucket.services import affiliate as affiliate_service

logger = logging.getLogger(__name__)


def _display_name(user: User) -> str:
    return user.first_name or "Someone"


def _notify_followers(db: Session, owner: User, type: str, title: str, message: str, data: dict) -> list:
    """Кладет уведомление каждому подписчику владельца. Требует внешнего db.commit()."""
    return [
        crud_notification.build_notification(
            db, user_id=follower_id, type=type, title=title, message=message, data=data
        )
        for follower_id in crud_friend.get_follower_ids(db, user_id=owner.id)
    ]


# --- Доступ ---

def _get_visible_wishlist(db: Session, user: User, wishlist_id: int) -> Wishlist:
    """Свой вишлист или чужой публичный. Чужие приватные выглядят как несуществующие."""
    wishlist = crud_wishlist.get_wishlist(db, wishlist_id=wishlist_id)
    if not wishlist or (not wishlist.is_public and wishlist.user_id != user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wishlist not found")
    return wishlist


def _get_own_wishlist(db: Session, user: User, wishlist_id: int) -> Wishlist:
    wishlist = _get_visible_wishlist(db, user, wishlist_id)
    if wishlist.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only modify your own wishlists")
    return wishlist


def get_visible_item(db: Session, user: User, item_id: int, for_update: bool = False) -> WishlistItem:
    item = crud_wishlist.get_item_for_update(db, item_id) if for_update else crud_wishlist.get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    wishlist = item.wishlist
    if not wishlist.is_public and wishlist.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return item


def get_own_item(db: Session, user: User, item_id: int) -> WishlistItem:
    item = get_visible_item(db, user, item_id)
    if item.wishlist.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only modify your own items")
    return item


# --- Вишлисты ---

def get_my_wishlists(db: Session, user: User) -> list[Wishlist]:
    return crud_wishlist.get_user_wishlists(db, user_id=user.id)


def get_wishlist(db: Session, user: User, wishlist_id: int) -> Wishlist:
    return _get_visible_wishlist(db, user, wishlist_id)


def create_wishlist(db: Session, user: User, data: WishlistCreate) -> tuple[Wishlist, list[int]]:
    """Создает вишлист. Публичный вишлист анонсируется подписчикам."""
    if data.is_default:
        crud_wishlist.clear_default_flag(db, user_id=user.id)

    wishlist = crud_wishlist.build_wishlist(db, user_id=user.id, **data.model_dump())
    db.flush()

    notifications = []
    if wishlist.is_public:
        notifications = _notify_followers(
            db, user,
            type="wishlist_shared",
            title="📝 New Wishlist!",
            message=f'{_display_name(user)} created a new wishlist: "{wishlist.name}"',
            data={"wishlist_id": wishlist.id, "user_id": user.id},
        )
    db.commit()
    db.refresh(wishlist)

    logger.info(f"User {user.id} created wishlist {wishlist.id} (public: {wishlist.is_public}).")
    return wishlist, [n.id for n in notifications]


def update_wishlist(db: Session, user: User, wishlist_id: int, data: WishlistUpdate) -> Wishlist:
    wishlist = _get_own_wishlist(db, user, wishlist_id)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("is_default"):
        crud_wishlist.clear_default_flag(db, user_id=user.id, except_id=wishlist.id)

    for field, value in update_data.items():
        if value is None and field in ("name", "is_public", "is_default"):
            continue
        setattr(wishlist, field, value)

    db.commit()
    db.refresh(wishlist)
    return wishlist


def delete_wishlist(db: Session, user: User, wishlist_id: int):
    wishlist = _get_own_wishlist(db, user, wishlist_id)
    crud_wishlist.delete_wishlist(db, wishlist)
    logger.info(f"User {user.id} deleted wishlist {wishlist_id}.")


def get_share_link(db: Session, user: User, wishlist_id: int) -> ShareLink:
    wishlist = _get_visible_wishlist(db, user, wishlist_id)
    return ShareLink(url=f"https://t.me/{settings.TELEGRAM_BOT_USERNAME}?start=wishlist_{wishlist.id}")


# --- Подарки ---

def _apply_url(fields: dict, current: WishlistItem | None = None):
    """
    Переписывает ссылку на товар в партнерскую, сохраняя исходную.
    Если клиент прислал обратно текущую ссылку подарка, ссылки не меняются.
    """
    url = fields.get("url")
    if current is not None and url and url in (current.url, current.affiliate_url):
        fields.pop("url")
        return
    if not url:
        fields["original_url"] = None
        fields["affiliate_url"] = None
        return
    original_url = affiliate_service.strip_affiliate_param(url)
    link = affiliate_service.process_affiliate_link(original_url)
    fields["original_url"] = original_url
    fields["url"] = link.affiliate_url
    fields["affiliate_url"] = link.affiliate_url if link.has_affiliate else None


def add_item(db: Session, user: User, wishlist_id: int, data: WishlistItemCreate) -> tuple[WishlistItem, list[int]]:
    wishlist = _get_own_wishlist(db, user, wishlist_id)

    fields = data.model_dump()
    fields["currency"] = fields["currency"].upper()
    _apply_url(fields)

    item = crud_wishlist.build_item(db, wishlist_id=wishlist.id, **fields)
    db.flush()

    notifications = []
    if wishlist.is_public:
        notifications = _notify_followers(
            db, user,
            type="friend_added_item",
            title="✨ New Item Added!",
            message=f'{_display_name(user)} added "{item.name}" to their wishlist "{wishlist.name}"',
            data={"wishlist_id": wishlist.id, "item_id": item.id, "user_id": user.id},
        )
    db.commit()
    db.refresh(item)

    logger.info(f"User {user.id} added item {item.id} to wishlist {wishlist.id}.")
    return item, [n.id for n in notifications]


def update_item(db: Session, user: User, item_id: int, data: WishlistItemUpdate) -> WishlistItem:
    item = get_own_item(db, user, item_id)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("name") is None:
        update_data.pop("name", None)
    if "currency" in update_data:
        if update_data["currency"] is None:
            update_data.pop("currency")
        else:
            update_data["currency"] = update_data["currency"].upper()
    if update_data.get("priority") is None:
        update_data.pop("priority", None)
    if "url" in update_data:
        _apply_url(update_data, current=item)

    for field, value in update_data.items():
        setattr(item, field, value)

    db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, user: User, item_id: int):
    item = get_own_item(db, user, item_id)
    crud_wishlist.delete_item(db, item)
    logger.info(f"User {user.id} deleted item {item_id}.")


# --- Бронирование и покупка ---

def _conflict(detail: str):
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def _notify_owner(db: Session, item: WishlistItem, type: str, title: str, message: str):
    return crud_notification.build_notification(
        db,
        user_id=item.wishlist.user_id,
        type=type,
        title=title,
        message=message,
        data={"wishlist_id": item.wishlist_id, "item_id": item.id},
    )


def reserve_item(db: Session, user: User, item_id: int) -> tuple[WishlistItem, int]:
    item = get_visible_item(db, user, item_id, for_update=True)
    if item.wishlist.user_id == user.id:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot reserve your own item")
    if item.status != ITEM_AVAILABLE:
        db.rollback()
        raise _conflict(f"Item is already {item.status}")

    item.status = ITEM_RESERVED
    item.reserved_by = user.id
    item.reserved_at = datetime.now(timezone.utc)
    # Кто забронировал - сюрприз, имя владельцу не сообщаем
    notification = _notify_owner(
        db, item,
        type="item_reserved",
        title="🎁 Gift Reserved!",
        message=f'Someone reserved "{item.name}" from your wishlist "{item.wishlist.name}"',
    )
    db.commit()
    db.refresh(item)

    logger.info(f"User {user.id} reserved item {item.id}.")
    return item, notification.id


def cancel_reservation(db: Session, user: User, item_id: int) -> WishlistItem:
    item = get_visible_item(db, user, item_id, for_update=True)
    if item.status != ITEM_RESERVED:
        db.rollback()
        raise _conflict("Item is not reserved")
    if item.reserved_by != user.id:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the user who reserved the item can cancel the reservation")

    item.status = ITEM_AVAILABLE
    item.reserved_by = None
    item.reserved_at = None
    db.commit()
    db.refresh(item)

    logger.info(f"User {user.id} cancelled reservation of item {item.id}.")
    return item


def purchase_item(db: Session, user: User, item_id: int) -> tuple[WishlistItem, int]:
    item = get_visible_item(db, user, item_id, for_update=True)
    if item.wishlist.user_id == user.id:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot purchase your own item")
    if item.status == ITEM_PURCHASED:
        db.rollback()
        raise _conflict("Item is already purchased")
    if item.status == ITEM_RESERVED and item.reserved_by != user.id:
        db.rollback()
        raise _conflict("Item is reserved by another user")

    item.status = ITEM_PURCHASED
    item.purchased_by = user.id
    item.purchased_at = datetime.now(timezone.utc)
    notification = _notify_owner(
        db, item,
        type="item_purchased",
        title="🎉 Gift Purchased!",
        message=f'Someone bought "{item.name}" from your wishlist "{item.wishlist.name}"',
    )
    db.commit()
    db.refresh(item)

    logger.info(f"User {user.id} purchased item {item.id}.")
    return item, notification.id
