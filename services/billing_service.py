# ================================================================
# services/billing_service.py — Stripe webhook state machine
# ================================================================
"""
Applies verified Stripe events to the ``subscription`` table.

Every event is recorded in ``webhook_event`` by its Stripe id before it is
applied, so a redelivered event is acknowledged without being processed
twice. Subscription rows are upserted by ``stripe_subscription_id``.
"""
from datetime import datetime
from typing import Any, Callable, Dict, Optional
import json
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from core.payment_utils import resolve_tier
from models.models import PlanTier, Subscription, SubscriptionStatus, User, WebhookEvent
from services.payment_service import PaymentGateway

logger = logging.getLogger(__name__)

PROCESSED = "processed"
DUPLICATE = "duplicate"
IGNORED = "ignored"

# Stripe statuses without a direct counterpart
STATUS_ALIASES = {
    "incomplete_expired": SubscriptionStatus.CANCELED,
    "paused": SubscriptionStatus.PAST_DUE,
}


def _timestamp(value: Optional[int]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.utcfromtimestamp(value)


def normalize_status(stripe_status: Optional[str]) -> SubscriptionStatus:
    try:
        return SubscriptionStatus(stripe_status)
    except ValueError:
        return STATUS_ALIASES.get(stripe_status, SubscriptionStatus.INCOMPLETE)


def first_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    """Subscription id of an invoice (top-level field or the newer ``parent`` block)."""
    if invoice.get("subscription"):
        return invoice["subscription"]
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return details.get("subscription")


class BillingWebhookHandler:
    def __init__(self, session: Session, gateway: PaymentGateway, price_to_tier: Dict[str, PlanTier]):
        self.session = session
        self.gateway = gateway
        self.price_to_tier = price_to_tier

        self._handlers: Dict[str, Callable[[Dict[str, Any], datetime], None]] = {
            "checkout.session.completed": self._checkout_completed,
            "customer.subscription.updated": self._subscription_updated,
            "customer.subscription.deleted": self._subscription_deleted,
            "invoice.payment_failed": self._invoice_payment_failed,
            "invoice.payment_succeeded": self._invoice_payment_succeeded,
        }

    # ============================================================
    # Entry point
    # ============================================================
    def handle_event(self, event: Dict[str, Any], now: Optional[datetime] = None) -> str:
        now = now or datetime.utcnow()
        event_id = event.get("id")
        event_type = event.get("type", "")

        record = self._record_event(event)
        if record is None or record.processed:
            logger.info("🔁 Webhook event %s already processed, skipping", event_id)
            return DUPLICATE

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("ℹ️ Unhandled event type: %s", event_type)
            self._mark_processed(record)
            return IGNORED

        logger.info("📨 Processing webhook event %s (%s)", event_id, event_type)
        try:
            handler(event["data"]["object"], now)
            self._mark_processed(record)
        except Exception as e:
            self.session.rollback()
            logger.exception("❌ Error processing webhook event %s: %s", event_id, e)
            record.processing_error = str(e)
            self.session.add(record)
            self.session.commit()
            raise
        return PROCESSED

    def _record_event(self, event: Dict[str, Any]) -> Optional[WebhookEvent]:
        existing = self.session.exec(
            select(WebhookEvent).where(WebhookEvent.stripe_event_id == event["id"])
        ).first()
        if existing:
            return existing

        record = WebhookEvent(
            stripe_event_id=event["id"],
            event_type=event.get("type", ""),
            payload=json.dumps(event),
        )
        self.session.add(record)
        try:
            self.session.commit()
        except IntegrityError:
            # A concurrent delivery of the same event got there first
            self.session.rollback()
            return None
        self.session.refresh(record)
        return record

    def _mark_processed(self, record: WebhookEvent) -> None:
        record.processed = True
        record.processing_error = None
        self.session.add(record)
        self.session.commit()

    # ============================================================
    # Lookups
    # ============================================================
    def _find_subscription(self, stripe_subscription_id: Optional[str]) -> Optional[Subscription]:
        if not stripe_subscription_id:
            return None
        return self.session.exec(
            select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
        ).first()

    def _find_user(self, metadata: Optional[Dict[str, Any]], customer_id: Optional[str]) -> Optional[User]:
        user_id = (metadata or {}).get("user_id")
        if user_id:
            user = self.session.get(User, int(user_id))
            if user:
                return user
        if customer_id:
            return self.session.exec(select(User).where(User.stripe_customer_id == customer_id)).first()
        return None

    def _apply(self, row: Subscription, subscription: Dict[str, Any], status: SubscriptionStatus) -> Subscription:
        """Copy price, tier, period and cancellation fields from a Stripe subscription."""
        item = first_item(subscription)
        price_id = (item.get("price") or {}).get("id")

        row.stripe_subscription_id = subscription["id"]
        row.stripe_price_id = price_id
        row.plan_tier = resolve_tier(price_id, self.price_to_tier).value
        row.status = status.value
        row.trial_ends_at = _timestamp(subscription.get("trial_end"))
        # Newer API versions only carry the period on the subscription item
        row.current_period_start = _timestamp(
            subscription.get("current_period_start") or item.get("current_period_start")
        )
        row.current_period_end = _timestamp(subscription.get("current_period_end") or item.get("current_period_end"))
        row.cancel_at_period_end = bool(subscription.get("cancel_at_period_end"))
        row.canceled_at = _timestamp(subscription.get("canceled_at"))
        row.updated_at = datetime.utcnow()
        self.session.add(row)
        return row

    def _upsert(self, user: User, subscription: Dict[str, Any], status: SubscriptionStatus) -> Subscription:
        row = self._find_subscription(subscription["id"])
        if row is None:
            row = Subscription(user_id=user.id, organization_id=user.organization_id)
        return self._apply(row, subscription, status)

    # ============================================================
    # Event handlers
    # ============================================================
    def _checkout_completed(self, checkout: Dict[str, Any], now: datetime) -> None:
        subscription_id = checkout.get("subscription")
        if not subscription_id:
            logger.warning("⚠️ Checkout %s has no subscription, ignoring", checkout.get("id"))
            return

        user = self._find_user(checkout.get("metadata"), checkout.get("customer"))
        if user is None and checkout.get("client_reference_id"):
            user = self.session.get(User, int(checkout["client_reference_id"]))
        if user is None:
            logger.error("❌ No user for checkout session %s", checkout.get("id"))
            return

        if checkout.get("customer") and not user.stripe_customer_id:
            user.stripe_customer_id = checkout["customer"]
            self.session.add(user)

        subscription = self.gateway.retrieve_subscription(subscription_id)
        trial_end = _timestamp(subscription.get("trial_end"))
        if subscription.get("status") == SubscriptionStatus.TRIALING.value or (trial_end and trial_end > now):
            status = SubscriptionStatus.TRIALING
        else:
            status = SubscriptionStatus.ACTIVE

        row = self._upsert(user, subscription, status)
        logger.info("✅ Subscription %s for user %s: %s (%s)", subscription_id, user.id, row.plan_tier, row.status)

    def _subscription_updated(self, subscription: Dict[str, Any], now: datetime) -> None:
        status = normalize_status(subscription.get("status"))
        trial_end = _timestamp(subscription.get("trial_end"))
        if status == SubscriptionStatus.ACTIVE and trial_end and trial_end > now:
            status = SubscriptionStatus.TRIALING

        row = self._find_subscription(subscription["id"])
        if row is not None:
            self._apply(row, subscription, status)
        else:
            user = self._find_user(subscription.get("metadata"), subscription.get("customer"))
            if user is None:
                logger.error("❌ Could not find user for subscription update %s", subscription["id"])
                return
            row = self._upsert(user, subscription, status)
        logger.info("🔄 Updated subscription %s: %s (%s)", subscription["id"], row.plan_tier, row.status)

    def _subscription_deleted(self, subscription: Dict[str, Any], now: datetime) -> None:
        row = self._find_subscription(subscription["id"])
        if row is None:
            logger.warning("⚠️ Deleted subscription %s is unknown", subscription["id"])
            return
        row.status = SubscriptionStatus.CANCELED.value
        row.canceled_at = now
        row.updated_at = now
        self.session.add(row)
        logger.info("🗑️ Canceled subscription %s", subscription["id"])

    def _set_status_from_invoice(self, invoice: Dict[str, Any], status: SubscriptionStatus) -> None:
        row = self._find_subscription(invoice_subscription_id(invoice))
        if row is None:
            return
        row.status = status.value
        row.updated_at = datetime.utcnow()
        self.session.add(row)
        logger.info("💳 Subscription %s is now %s", row.stripe_subscription_id, status.value)

    def _invoice_payment_failed(self, invoice: Dict[str, Any], now: datetime) -> None:
        self._set_status_from_invoice(invoice, SubscriptionStatus.PAST_DUE)

    def _invoice_payment_succeeded(self, invoice: Dict[str, Any], now: datetime) -> None:
        # Only renewals reactivate; the first invoice is covered by checkout
        if invoice.get("billing_reason") == "subscription_cycle":
            self._set_status_from_invoice(invoice, SubscriptionStatus.ACTIVE)
