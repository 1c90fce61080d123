# core/payment_utils.py
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from sqlmodel import Session, select

from models.models import PlanTier, Subscription, SubscriptionStatus, User

UNLIMITED = -1


@dataclass(frozen=True)
class PlanLimits:
    deadlines: int
    team_members: int
    sms: int
    recurring: bool
    integrations: bool

    def to_dict(self) -> dict:
        return asdict(self)


PLAN_LIMITS: Dict[PlanTier, PlanLimits] = {
    PlanTier.FREE: PlanLimits(deadlines=5, team_members=1, sms=0, recurring=False, integrations=False),
    PlanTier.PRO: PlanLimits(deadlines=UNLIMITED, team_members=1, sms=50, recurring=True, integrations=True),
    PlanTier.TEAM: PlanLimits(deadlines=UNLIMITED, team_members=10, sms=200, recurring=True, integrations=True),
    PlanTier.ENTERPRISE: PlanLimits(
        deadlines=UNLIMITED, team_members=UNLIMITED, sms=UNLIMITED, recurring=True, integrations=True
    ),
}

# Subscription states that grant the paid tier
ENTITLED_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)


def get_plan_limits(tier: str) -> PlanLimits:
    """Limits for a tier; unknown tiers get the free limits."""
    try:
        return PLAN_LIMITS[PlanTier(tier)]
    except ValueError:
        return PLAN_LIMITS[PlanTier.FREE]


def within_limit(limit: int, current: int) -> bool:
    return limit == UNLIMITED or current < limit


# ------------------------
# Price id -> tier lookup
# ------------------------
def build_price_to_tier(price_ids: Dict[str, str]) -> Dict[str, PlanTier]:
    """``{"pro_monthly": "price_123"}`` -> ``{"price_123": PlanTier.PRO}``."""
    mapping: Dict[str, PlanTier] = {}
    for price_key, price_id in price_ids.items():
        tier_name = price_key.split("_", 1)[0]
        mapping[price_id] = PlanTier(tier_name)
    return mapping


def resolve_tier(price_id: Optional[str], price_to_tier: Dict[str, PlanTier]) -> PlanTier:
    # Unrecognised prices are treated as Pro
    if not price_id:
        return PlanTier.PRO
    return price_to_tier.get(price_id, PlanTier.PRO)


# ------------------------
# Current subscription / tier for a user
# ------------------------
def get_current_subscription(session: Session, user_id: int) -> Optional[Subscription]:
    """Latest subscription row that is active, trialing or past due."""
    statement = (
        select(Subscription)
        .where(
            Subscription.user_id == user_id,
            Subscription.status.in_(ENTITLED_STATUSES + (SubscriptionStatus.PAST_DUE.value,)),
        )
        .order_by(Subscription.updated_at.desc())
    )
    return session.exec(statement).first()


def get_user_tier(session: Session, user: User) -> PlanTier:
    """Tier of the user's active or trialing subscription, else free."""
    subscription = session.exec(
        select(Subscription)
        .where(
            Subscription.user_id == user.id,
            Subscription.status.in_(ENTITLED_STATUSES),
        )
        .order_by(Subscription.updated_at.desc())
    ).first()
    if not subscription:
        return PlanTier.FREE
    return PlanTier(subscription.plan_tier)
