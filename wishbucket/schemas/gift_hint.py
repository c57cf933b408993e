# wishbucket/schemas/gift_hint.py
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

HintStatus = Literal["active", "purchased", "archived"]
HintMessageType = Literal["text", "photo", "voice", "video", "video_note", "document"]


class GiftHint(BaseModel):
    id: int
    user_id: int
    about_user_id: int | None = None
    about_name: str
    about_username: str | None = None
    hint_text: str | None = None
    message_type: HintMessageType
    media_file_id: str | None = None
    telegram_message_id: int | None = None
    telegram_chat_id: int | None = None
    forward_date: datetime | None = None
    status: HintStatus
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Менять можно только статус и заметки
class GiftHintUpdate(BaseModel):
    status: Optional[HintStatus] = None
    notes: Optional[str] = Field(default=None, max_length=2000)

class HintCount(BaseModel):
    name: str
    count: int

class ResendResult(BaseModel):
    success: bool
