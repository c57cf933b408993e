# wishbucket/schemas/crowdfunding.py
from datetime import datetime
from decimal import Decimal
from typing import List
from pydantic import BaseModel, Field


class CrowdfundingCreate(BaseModel):
    target_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)

class ContributionCreate(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)

class Contributor(BaseModel):
    user_id: int
    amount: Decimal
    contributed_at: datetime

    class Config:
        from_attributes = True

class Crowdfunding(BaseModel):
    id: int
    item_id: int
    target_amount: Decimal
    current_amount: Decimal
    is_active: bool
    created_at: datetime
    contributors: List[Contributor] = []

    class Config:
        from_attributes = True
