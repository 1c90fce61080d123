# payment_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Dict
from datetime import datetime

from models.models import PlanTier


# ---------------------------
# Checkout
# ---------------------------
class CheckoutSessionRequest(BaseModel):
    price_key: str = Field(..., alias="priceKey", description="e.g. pro_monthly, team_yearly")
    success_url: str = Field(..., alias="successUrl")
    cancel_url: str = Field(..., alias="cancelUrl")

    model_config = ConfigDict(populate_by_name=True)


class CheckoutSessionResponse(BaseModel):
    session_id: str = Field(..., alias="sessionId")
    url: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class WebhookAck(BaseModel):
    received: bool = True
    status: str


# ---------------------------
# Subscription / limits
# ---------------------------
class SubscriptionRead(BaseModel):
    id: int
    user_id: int
    organization_id: Optional[int] = None
    stripe_subscription_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    plan_tier: PlanTier
    status: str
    trial_ends_at: Optional[datetime] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    canceled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PlanLimitsRead(BaseModel):
    deadlines: int = Field(..., description="-1 means unlimited")
    team_members: int
    sms: int
    recurring: bool
    integrations: bool


class UsageRead(BaseModel):
    deadlines: int
    team_members: int


class UserLimitsRead(BaseModel):
    plan_tier: PlanTier
    limits: PlanLimitsRead
    usage: UsageRead
    can_create_deadline: bool


class PlansRead(BaseModel):
    plans: Dict[PlanTier, PlanLimitsRead]
