from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from models.models import PlanTier


class ProfileRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    is_active: bool
    organization_id: Optional[int] = None
    organization_name: Optional[str] = None
    plan_tier: PlanTier = PlanTier.FREE
    created_at: datetime


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
