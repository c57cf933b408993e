# wishbucket/routers/v1/endpoints/gift_hint.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from wishbucket.dependencies import get_current_user, get_db
from wishbucket.models.user import User
from wishbucket.schemas.gift_hint import GiftHint, GiftHintUpdate, HintCount, HintStatus, ResendResult
from wishbucket.services import gift_hint as gift_hint_service

router = APIRouter()


@router.get("/hints", response_model=List[GiftHint])
def list_hints(
    hint_status: Optional[HintStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Подсказки, сохраненные через бота, от новых к старым."""
    return gift_hint_service.get_hints(db, current_user, hint_status=hint_status)


@router.get("/hints/counts", response_model=List[HintCount])
def hint_counts(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return gift_hint_service.get_hint_counts(db, current_user)


@router.patch("/hints/{hint_id}", response_model=GiftHint)
def update_hint(
    hint_id: int,
    data: GiftHintUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return gift_hint_service.update_hint(db, current_user, hint_id, data)


@router.delete("/hints/{hint_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_hint(
    hint_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    gift_hint_service.delete_hint(db, current_user, hint_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/hints/{hint_id}/resend", response_model=ResendResult)
async def resend_hint(
    hint_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return await gift_hint_service.resend_hint(db, current_user, hint_id)
