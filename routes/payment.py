# routes/payment.py
from typing import Dict, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session, func, select

from core.config import settings
from core.database import get_session
from core.exceptions import DeadlineGuardError, WebhookVerificationError
from core.payment_utils import (
    PLAN_LIMITS,
    build_price_to_tier,
    get_current_subscription,
    get_plan_limits,
    get_user_tier,
    within_limit,
)
from core.security import get_current_user
from models.models import PlanTier, User
from schemas.payment_schema import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PlanLimitsRead,
    PlansRead,
    SubscriptionRead,
    UsageRead,
    UserLimitsRead,
    WebhookAck,
)
from services.billing_service import BillingWebhookHandler
from services.deadline_service import DeadlineRepository
from services.payment_service import PaymentGateway, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_price_ids() -> Dict[str, str]:
    return settings.STRIPE_PRICE_IDS


def get_price_to_tier(price_ids: Dict[str, str] = Depends(get_price_ids)) -> Dict[str, PlanTier]:
    return build_price_to_tier(price_ids)


def count_team_members(session: Session, user: User) -> int:
    if not user.organization_id:
        return 1
    return session.exec(
        select(func.count(User.id)).where(User.organization_id == user.organization_id)
    ).one()


# ============================================================
# ✅ PLANS (public)
# ============================================================
@router.get("/plans", response_model=PlansRead)
def list_plans():
    return PlansRead(plans={tier: PlanLimitsRead(**limits.to_dict()) for tier, limits in PLAN_LIMITS.items()})


# ============================================================
# ✅ CHECKOUT SESSION
# ============================================================
@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
def create_checkout_session(
    payload: CheckoutSessionRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    price_ids: Dict[str, str] = Depends(get_price_ids),
):
    """Create a Stripe Checkout session for a subscription plan."""
    price_id = price_ids.get(payload.price_key)
    if not price_id:
        logger.warning("❌ Invalid price key requested: %s", payload.price_key)
        raise HTTPException(status_code=400, detail="Invalid price key")

    # Reuse the Stripe customer for this user when there is one
    customer_id = current_user.stripe_customer_id
    if not customer_id:
        customer_id = gateway.create_customer(current_user.email, current_user.name, current_user.id)
        current_user.stripe_customer_id = customer_id
        session.add(current_user)
        session.commit()
        logger.info("👤 Created Stripe customer %s for user %s", customer_id, current_user.id)

    checkout = gateway.create_checkout_session(
        customer_id=customer_id,
        price_id=price_id,
        success_url=payload.success_url,
        cancel_url=payload.cancel_url,
        user_id=current_user.id,
        trial_period_days=settings.TRIAL_PERIOD_DAYS,
    )
    logger.info("💳 Checkout session %s created for user %s (%s)", checkout["id"], current_user.id, payload.price_key)
    return CheckoutSessionResponse(session_id=checkout["id"], url=checkout["url"])


# ============================================================
# ✅ STRIPE WEBHOOK
# ============================================================
@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    price_to_tier: Dict[str, PlanTier] = Depends(get_price_to_tier),
):
    """Handle Stripe webhook events for subscription updates"""
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        raise WebhookVerificationError("Missing stripe-signature header")

    # Nothing is written before the signature checks out
    event = gateway.construct_event(payload, sig_header)

    handler = BillingWebhookHandler(session, gateway, price_to_tier)
    try:
        result = handler.handle_event(event)
    except DeadlineGuardError:
        raise
    except Exception as e:
        logger.error("❌ Error processing webhook event %s: %s", event.get("type"), e)
        return JSONResponse(status_code=500, content={"error": f"Error processing event: {e}"})

    return WebhookAck(status=result)


# ============================================================
# ✅ CURRENT SUBSCRIPTION / LIMITS
# ============================================================
@router.get("/subscription", response_model=Optional[SubscriptionRead])
def get_my_subscription(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return get_current_subscription(session, current_user.id)


@router.get("/limits", response_model=UserLimitsRead)
def get_my_limits(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    tier = get_user_tier(session, current_user)
    limits = get_plan_limits(tier)
    deadlines = DeadlineRepository(session).count_owned(current_user.id)
    return UserLimitsRead(
        plan_tier=tier,
        limits=PlanLimitsRead(**limits.to_dict()),
        usage=UsageRead(deadlines=deadlines, team_members=count_team_members(session, current_user)),
        can_create_deadline=within_limit(limits.deadlines, deadlines),
    )
