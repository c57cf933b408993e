# wishbucket/routers/v1/endpoints/referral.py
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from wishbucket.bot.services import notification as bot_notification_service
from wishbucket.core.limiter import limiter
from wishbucket.dependencies import get_current_user, get_db
from wishbucket.models.user import User
from wishbucket.schemas.referral import (
    ApplyReferralRequest,
    ApplyReferralResult,
    ReferralEntry,
    ReferralStats,
)
from wishbucket.services import referral as referral_service

router = APIRouter()


@router.get("/users/me/referral-stats", response_model=ReferralStats)
def get_referral_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Реферальный код, ссылка-приглашение и статистика по приглашенным."""
    return referral_service.get_referral_stats(db, current_user)


@router.get("/users/me/referrals", response_model=List[ReferralEntry])
def get_my_referrals(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return referral_service.get_referrals(db, current_user)


@router.post("/referrals/apply", response_model=ApplyReferralResult)
@limiter.limit("10/minute")
def apply_referral_code(
    request: Request,
    payload: ApplyReferralRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Применяет чужой реферальный код.
    Владелец кода получает 100 баллов, применивший - 50. Применить код можно один раз.
    """
    result, notification_id = referral_service.apply_referral(db, redeemer=current_user, code=payload.code)
    background_tasks.add_task(bot_notification_service.dispatch_notification_task, notification_id)
    return result
