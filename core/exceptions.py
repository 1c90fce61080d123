"""
Domain exceptions for DeadlineGuard.

Services raise these; the handler registered in ``main.py`` renders them as
``{"error": code, "message": ..., "details": {...}}`` with the matching status.
"""
from typing import Any, Dict, Optional


class DeadlineGuardError(Exception):
    """Base exception for all DeadlineGuard errors."""

    status_code: int = 400
    default_code: str = "error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationFailedError(DeadlineGuardError):
    status_code = 400
    default_code = "validation_error"


class PermissionDeniedError(DeadlineGuardError):
    status_code = 403
    default_code = "forbidden"


class NotFoundError(DeadlineGuardError):
    status_code = 404
    default_code = "not_found"


class ConflictError(DeadlineGuardError):
    status_code = 409
    default_code = "conflict"


# ------------------------------------------------------------
# Plan / usage limits: distinguishable so clients can prompt an upgrade
# ------------------------------------------------------------
class QuotaExceededError(DeadlineGuardError):
    status_code = 402
    default_code = "quota_exceeded"

    def __init__(self, resource: str, limit: int, plan_tier: str):
        super().__init__(
            f"Your {plan_tier} plan allows at most {limit} {resource}. Upgrade to add more.",
            details={"resource": resource, "limit": limit, "plan_tier": plan_tier},
        )


class PlanFeatureError(DeadlineGuardError):
    status_code = 402
    default_code = "plan_feature_unavailable"

    def __init__(self, feature: str, plan_tier: str):
        super().__init__(
            f"The {feature} feature is not included in the {plan_tier} plan.",
            details={"feature": feature, "plan_tier": plan_tier},
        )


class RateLimitExceededError(DeadlineGuardError):
    status_code = 429
    default_code = "rate_limited"

    def __init__(self, limit: int, window_hours: int):
        super().__init__(
            f"Rate limit exceeded: maximum {limit} deadlines per {window_hours} hours.",
            details={"limit": limit, "window_hours": window_hours},
        )


# ------------------------------------------------------------
# Upstream providers
# ------------------------------------------------------------
class PaymentProviderError(DeadlineGuardError):
    status_code = 502
    default_code = "payment_provider_error"


class WebhookVerificationError(DeadlineGuardError):
    status_code = 400
    default_code = "invalid_webhook"
