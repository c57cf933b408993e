# wishbucket/routers/v1/endpoints/secret_santa.py
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from wishbucket.bot.services import notification as bot_notification_service
from wishbucket.dependencies import get_current_user, get_db
from wishbucket.models.user import User
from wishbucket.schemas.secret_santa import SecretSanta, SecretSantaCreate, SecretSantaJoin
from wishbucket.services import secret_santa as secret_santa_service

router = APIRouter()


@router.get("/secret-santa", response_model=List[SecretSanta])
def list_my_secret_santas(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Игры, которые пользователь организовал или в которых участвует."""
    return secret_santa_service.get_my_secret_santas(db, current_user)


@router.post("/secret-santa", response_model=SecretSanta, status_code=status.HTTP_201_CREATED)
def create_secret_santa(
    data: SecretSantaCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return secret_santa_service.create_secret_santa(db, current_user, data)


@router.post("/secret-santa/{santa_id}/join", response_model=SecretSanta)
def join_secret_santa(
    santa_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[SecretSantaJoin] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    santa, notification_id = secret_santa_service.join_secret_santa(db, current_user, santa_id, data or SecretSantaJoin())
    if notification_id:
        background_tasks.add_task(bot_notification_service.dispatch_notification_task, notification_id)
    return santa
