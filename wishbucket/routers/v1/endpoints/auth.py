# wishbucket/routers/v1/endpoints/auth.py
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from wishbucket.bot.services import notification as bot_notification_service
from wishbucket.core.limiter import limiter
from wishbucket.dependencies import get_db
from wishbucket.schemas.user import TelegramLoginData, Token
from wishbucket.services import auth as auth_service

router = APIRouter()

@router.get("/")
def read_root():
    return {"status": "ok"}


@router.post("/auth/telegram", response_model=Token)
@limiter.limit("5/minute")
async def login_via_telegram(
    request: Request,
    login_data: TelegramLoginData,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """
    Аутентифицирует пользователя с помощью Telegram initData.
    Если Mini App открыта по реферальной ссылке (start_param=ref_<код>),
    код применяется сразу при входе.
    Защищено лимитом в 5 запросов в минуту с одного IP.
    """
    token, notification_ids = auth_service.authenticate_telegram_user(db, login_data.init_data)
    for notification_id in notification_ids:
        background_tasks.add_task(bot_notification_service.dispatch_notification_task, notification_id)
    return token
