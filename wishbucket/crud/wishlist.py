# wishbucket/crud/wishlist.py
from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload
from wishbucket.models.wishlist import Wishlist, WishlistItem

# --- Вишлисты ---

def get_wishlist(db: Session, wishlist_id: int) -> Wishlist | None:
    return db.query(Wishlist).options(selectinload(Wishlist.items)).filter(Wishlist.id == wishlist_id).first()

def get_user_wishlists(db: Session, user_id: int, public_only: bool = False) -> list[Wishlist]:
    """Вишлисты пользователя: сначала основной, затем от новых к старым."""
    query = db.query(Wishlist).options(selectinload(Wishlist.items)).filter(Wishlist.user_id == user_id)
    if public_only:
        query = query.filter(Wishlist.is_public == True)
    return query.order_by(Wishlist.is_default.desc(), Wishlist.id.desc()).all()

def build_wishlist(db: Session, user_id: int, **fields) -> Wishlist:
    """Требует внешнего вызова db.commit()."""
    db_wishlist = Wishlist(user_id=user_id, **fields)
    db.add(db_wishlist)
    return db_wishlist

def clear_default_flag(db: Session, user_id: int, except_id: int | None = None):
    """Снимает флаг 'основной' со всех вишлистов пользователя. Требует внешнего db.commit()."""
    stmt = update(Wishlist).where(Wishlist.user_id == user_id, Wishlist.is_default == True)
    if except_id is not None:
        stmt = stmt.where(Wishlist.id != except_id)
    db.execute(stmt.values(is_default=False).execution_options(synchronize_session=False))

def delete_wishlist(db: Session, wishlist: Wishlist):
    db.delete(wishlist)
    db.commit()

# --- Товары ---

def get_item(db: Session, item_id: int) -> WishlistItem | None:
    return db.query(WishlistItem).filter(WishlistItem.id == item_id).first()

def get_item_for_update(db: Session, item_id: int) -> WishlistItem | None:
    """Блокирует строку товара, чтобы два резервирования не прошли одновременно."""
    return db.query(WishlistItem).filter(WishlistItem.id == item_id).with_for_update().first()

def build_item(db: Session, wishlist_id: int, **fields) -> WishlistItem:
    """Требует внешнего вызова db.commit()."""
    db_item = WishlistItem(wishlist_id=wishlist_id, **fields)
    db.add(db_item)
    return db_item

def delete_item(db: Session, item: WishlistItem):
    db.delete(item)
    db.commit()
