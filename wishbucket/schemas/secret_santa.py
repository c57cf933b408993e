# wishbucket/schemas/secret_santa.py
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class SecretSantaCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    budget: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    exchange_date: date
    is_active: bool = True

class SecretSantaJoin(BaseModel):
    # Вишлист, который увидит тайный Санта участника
    wishlist_id: Optional[int] = None

# Кому дарит участник, наружу не отдается
class SecretSantaParticipant(BaseModel):
    user_id: int
    wishlist_id: int | None = None
    has_drawn: bool
    joined_at: datetime

    class Config:
        from_attributes = True

class SecretSanta(BaseModel):
    id: int
    organizer_id: int
    name: str
    description: str | None = None
    budget: Decimal | None = None
    exchange_date: date
    is_active: bool
    created_at: datetime
    participants: List[SecretSantaParticipant] = []

    class Config:
        from_attributes = True
