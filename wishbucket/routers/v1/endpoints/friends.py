# wishbucket/routers/v1/endpoints/friends.py
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.orm import Session

from wishbucket.bot.services import notification as bot_notification_service
from wishbucket.dependencies import get_current_user, get_db
from wishbucket.models.user import User
from wishbucket.schemas.friend import Friend
from wishbucket.services import friends as friends_service

router = APIRouter()


@router.get("/friends", response_model=List[Friend])
def list_friends(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Те, на кого подписан текущий пользователь."""
    return friends_service.get_friends(db, current_user)


@router.get("/friends/followers", response_model=List[Friend])
def list_followers(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return friends_service.get_followers(db, current_user)


@router.post("/friends/{friend_id}", response_model=Friend, status_code=status.HTTP_201_CREATED)
def follow(
    friend_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    friend, notification_id = friends_service.follow_user(db, current_user, friend_id)
    background_tasks.add_task(bot_notification_service.dispatch_notification_task, notification_id)
    return friend


@router.delete("/friends/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
def unfollow(
    friend_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    friends_service.unfollow_user(db, current_user, friend_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
