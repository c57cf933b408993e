# wishbucket/services/friends.py
"""
Подписки между пользователями. Подписка направленная: "друзья" - это те,
на кого я подписан, "подписчики" - те, кто подписан на меня.
"""
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wishbucket.core.exceptions import PersistenceFailure
from wishbucket.crud import friend as crud_friend
from wishbucket.crud import notification as crud_notification
from wishbucket.crud import user as crud_user
from wishbucket.models.user import User
from wishbucket.schemas.friend import Friend

logger = logging.getLogger(__name__)


def _display_name(user: User) -> str:
    if user.first_name:
        return user.first_name
    if user.username:
        return f"@{user.username}"
    return "Someone"


def follow_user(db: Session, current_user: User, friend_id: int) -> tuple[Friend, int]:
    """
    Подписывает текущего пользователя на другого.
    Возвращает карточку друга и ID уведомления для доставки.
    """
    if friend_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot follow yourself")

    target = crud_user.get_user_by_id(db, user_id=friend_id)
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if crud_friend.get_follow(db, user_id=current_user.id, friend_id=friend_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You already follow this user")

    is_follow_back = crud_friend.get_follow(db, user_id=friend_id, friend_id=current_user.id) is not None

    try:
        follow = crud_friend.build_follow(db, user_id=current_user.id, friend_id=friend_id)
        db.flush()
        title = "🎉 New Follower!" if is_follow_back else "👤 New Follower!"
        message = (
            f"{_display_name(current_user)} followed you back!"
            if is_follow_back
            else f"{_display_name(current_user)} started following you"
        )
        notification = crud_notification.build_notification(
            db,
            user_id=friend_id,
            type="new_follower",
            title=title,
            message=message,
            data={"follower_id": current_user.id, "is_follow_back": is_follow_back},
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You already follow this user")
    except Exception:
        db.rollback()
        logger.error(f"Failed to create follow {current_user.id} -> {friend_id}", exc_info=True)
        raise PersistenceFailure("Failed to follow user.")

    logger.info(f"User {current_user.id} followed user {friend_id} (follow back: {is_follow_back}).")
    db.refresh(follow)
    card = Friend(
        **_public_fields(target),
        is_following=True,
        is_followed_by=is_follow_back,
        added_at=follow.created_at,
    )
    return card, notification.id


def unfollow_user(db: Session, current_user: User, friend_id: int):
    deleted = crud_friend.delete_follow(db, user_id=current_user.id, friend_id=friend_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="You do not follow this user")
    logger.info(f"User {current_user.id} unfollowed user {friend_id}.")


def _public_fields(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "photo_url": user.photo_url,
    }


def get_friends(db: Session, current_user: User) -> list[Friend]:
    """На кого подписан пользователь, с отметкой о взаимности."""
    follower_ids = set(crud_friend.get_follower_ids(db, user_id=current_user.id))
    return [
        Friend(
            **_public_fields(follow.friend),
            is_following=True,
            is_followed_by=follow.friend_id in follower_ids,
            added_at=follow.created_at,
        )
        for follow in crud_friend.get_following(db, user_id=current_user.id)
    ]


def get_followers(db: Session, current_user: User) -> list[Friend]:
    """Кто подписан на пользователя, с отметкой, подписан ли он в ответ."""
    following_ids = set(crud_friend.get_following_ids(db, user_id=current_user.id))
    return [
        Friend(
            **_public_fields(follow.follower),
            is_following=follow.user_id in following_ids,
            is_followed_by=True,
            added_at=follow.created_at,
        )
        for follow in crud_friend.get_followers(db, user_id=current_user.id)
    ]
