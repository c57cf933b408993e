# wishbucket/services/secret_santa.py
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wishbucket.crud import notification as crud_notification
from wishbucket.crud import secret_santa as crud_secret_santa
from wishbucket.crud import wishlist as crud_wishlist
from wishbucket.models.secret_santa import SecretSanta
from wishbucket.models.user import User
from wishbucket.schemas.secret_santa import SecretSantaCreate, SecretSantaJoin

logger = logging.getLogger(__name__)


def get_my_secret_santas(db: Session, user: User) -> list[SecretSanta]:
    return crud_secret_santa.get_user_secret_santas(db, user_id=user.id)


def create_secret_santa(db: Session, user: User, data: SecretSantaCreate) -> SecretSanta:
    santa = crud_secret_santa.build_secret_santa(db, organizer_id=user.id, **data.model_dump())
    db.commit()
    db.refresh(santa)
    logger.info(f"User {user.id} created Secret Santa {santa.id}.")
    return santa


def join_secret_santa(db: Session, user: User, santa_id: int, data: SecretSantaJoin) -> tuple[SecretSanta, int | None]:
    """
    Добавляет пользователя в игру. Возвращает игру и ID уведомления
    организатору (None, если присоединился сам организатор).
    """
    santa = crud_secret_santa.get_secret_santa(db, santa_id=santa_id)
    if not santa or not santa.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Secret Santa not found")

    if crud_secret_santa.get_participant(db, santa_id=santa.id, user_id=user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already joined this Secret Santa")

    if data.wishlist_id is not None:
        wishlist = crud_wishlist.get_wishlist(db, wishlist_id=data.wishlist_id)
        if not wishlist or wishlist.user_id != user.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wishlist not found")

    crud_secret_santa.build_participant(db, santa_id=santa.id, user_id=user.id, wishlist_id=data.wishlist_id)
    notification = None
    if santa.organizer_id != user.id:
        notification = crud_notification.build_notification(
            db,
            user_id=santa.organizer_id,
            type="secret_santa_joined",
            title="🎅 New Participant!",
            message=f'{user.first_name or "Someone"} joined your Secret Santa "{santa.name}"',
            data={"secret_santa_id": santa.id, "user_id": user.id},
        )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already joined this Secret Santa")
    db.refresh(santa)

    logger.info(f"User {user.id} joined Secret Santa {santa.id}.")
    return santa, notification.id if notification else None
