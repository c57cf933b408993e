# wishbucket/routers/v1/endpoints/crowdfunding.py
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from wishbucket.bot.services import notification as bot_notification_service
from wishbucket.dependencies import get_current_user, get_db
from wishbucket.models.user import User
from wishbucket.schemas.crowdfunding import ContributionCreate, Crowdfunding, CrowdfundingCreate
from wishbucket.services import crowdfunding as crowdfunding_service

router = APIRouter()


@router.get("/items/{item_id}/crowdfunding", response_model=Crowdfunding)
def read_crowdfunding(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crowdfunding_service.get_crowdfunding(db, current_user, item_id)


@router.post("/items/{item_id}/crowdfunding", response_model=Crowdfunding, status_code=status.HTTP_201_CREATED)
def create_crowdfunding(
    item_id: int,
    data: CrowdfundingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Открывает сбор на подарок. Только для владельца подарка."""
    return crowdfunding_service.create_crowdfunding(db, current_user, item_id, data)


@router.post("/items/{item_id}/crowdfunding/contribute", response_model=Crowdfunding)
def contribute(
    item_id: int,
    data: ContributionCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    crowdfunding, notification_id = crowdfunding_service.contribute(db, current_user, item_id, data)
    background_tasks.add_task(bot_notification_service.dispatch_notification_task, notification_id)
    return crowdfunding
