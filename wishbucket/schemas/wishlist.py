# wishbucket/schemas/wishlist.py
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

Priority = Literal["low", "medium", "high"]
ItemStatus = Literal["available", "reserved", "purchased"]


class WishlistItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    priority: Priority = "medium"

class WishlistItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    priority: Optional[Priority] = None

class WishlistItem(BaseModel):
    id: int
    wishlist_id: int
    name: str
    description: str | None = None
    url: str | None = None
    original_url: str | None = None
    affiliate_url: str | None = None
    image_url: str | None = None
    price: Decimal | None = None
    currency: str
    priority: Priority
    status: ItemStatus
    reserved_by: int | None = None
    purchased_by: int | None = None
    reserved_at: datetime | None = None
    purchased_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WishlistCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = None
    event_date: Optional[date] = None
    is_public: bool = True
    is_default: bool = False

class WishlistUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = None
    event_date: Optional[date] = None
    is_public: Optional[bool] = None
    is_default: Optional[bool] = None

class Wishlist(BaseModel):
    id: int
    user_id: int
    name: str
    description: str | None = None
    image_url: str | None = None
    event_date: date | None = None
    is_public: bool
    is_default: bool
    created_at: datetime
    updated_at: datetime
    items: List[WishlistItem] = []

    class Config:
        from_attributes = True

class ShareLink(BaseModel):
    url: str
