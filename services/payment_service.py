# ================================================================
# services/payment_service.py — Stripe gateway (explicit API key)
# ================================================================
from typing import Any, Dict, Optional
import json
import logging

import stripe

from core.config import settings
from core.exceptions import PaymentProviderError, WebhookVerificationError

logger = logging.getLogger(__name__)


class PaymentGateway:
    """
    Thin wrapper over the Stripe SDK. The API key is passed on every call
    instead of being set on the ``stripe`` module.
    """

    def __init__(self, api_key: Optional[str], webhook_secret: Optional[str]):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def _require_key(self) -> str:
        if not self.api_key:
            raise PaymentProviderError("Payments are not configured (missing STRIPE_SECRET_KEY).")
        return self.api_key

    # ------------------------
    # Customers / Checkout
    # ------------------------
    def create_customer(self, email: str, name: Optional[str], user_id: int) -> str:
        try:
            customer = stripe.Customer.create(
                api_key=self._require_key(),
                email=email,
                name=name or None,
                metadata={"user_id": str(user_id)},
            )
        except stripe.StripeError as e:
            logger.error("❌ Stripe customer creation failed for user %s: %s", user_id, e)
            raise PaymentProviderError(f"Payment service error: {e.user_message or str(e)}")
        return customer.id

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        user_id: int,
        trial_period_days: int,
    ) -> Dict[str, str]:
        metadata = {"user_id": str(user_id)}
        try:
            checkout_session = stripe.checkout.Session.create(
                api_key=self._require_key(),
                customer=customer_id,
                mode="subscription",
                payment_method_types=["card"],
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
                subscription_data={
                    "trial_period_days": trial_period_days,
                    "metadata": metadata,
                },
                allow_promotion_codes=True,
                billing_address_collection="auto",
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("❌ Stripe checkout session creation failed: %s", e)
            raise PaymentProviderError(f"Payment service error: {e.user_message or str(e)}")
        return {"id": checkout_session.id, "url": checkout_session.url}

    # ------------------------
    # Subscriptions
    # ------------------------
    def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        """Subscription as a plain dict."""
        try:
            subscription = stripe.Subscription.retrieve(subscription_id, api_key=self._require_key())
        except stripe.StripeError as e:
            logger.error("❌ Could not retrieve subscription %s: %s", subscription_id, e)
            raise PaymentProviderError(f"Could not retrieve subscription {subscription_id}")
        return json.loads(str(subscription))

    # ------------------------
    # Webhooks
    # ------------------------
    def construct_event(self, payload: bytes, sig_header: str) -> Dict[str, Any]:
        """Verify the Stripe-Signature header and return the event as a plain dict."""
        if not self.webhook_secret:
            raise PaymentProviderError("Webhook secret not configured")
        try:
            stripe.Webhook.construct_event(
                payload=payload,
                sig_header=sig_header,
                secret=self.webhook_secret,
            )
        except ValueError as e:
            raise WebhookVerificationError(f"Invalid payload: {e}")
        except stripe.SignatureVerificationError as e:
            raise WebhookVerificationError(f"Invalid signature: {e}")
        return json.loads(payload)


# ============================================================
# ✅ Dependency
# ============================================================
def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)
