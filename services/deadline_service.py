# ================================================================
# services/deadline_service.py — Deadline repository
# ================================================================
"""
Deadline persistence with the tenant rules the database used to enforce:

* visibility: owner, or any member of the deadline's organization
* modification: owner, or an admin of the deadline's organization
* creation: per-plan deadline quota, recurring-feature gate, and at most
  100 new deadlines per user in a rolling 24 hours (renewals count too)
"""
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import or_
from sqlmodel import Session, func, select

from core.deadline_utils import next_due_date
from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    PlanFeatureError,
    QuotaExceededError,
    RateLimitExceededError,
    ValidationFailedError,
)
from core.payment_utils import get_plan_limits, get_user_tier, within_limit
from models.models import Deadline, RecurrencePattern, User

logger = logging.getLogger(__name__)

RATE_LIMIT_MAX_DEADLINES = 100
RATE_LIMIT_WINDOW = timedelta(hours=24)

# Fields a successor occurrence copies from its predecessor
INHERITED_FIELDS = (
    "title",
    "description",
    "category",
    "subcategory",
    "consequence_level",
    "user_id",
    "organization_id",
    "recurrence",
    "recurrence_interval_days",
    "auto_renew",
    "renewal_instructions",
    "estimated_cost",
    "reference_number",
    "issuing_authority",
)

# Columns an update may not set to null
REQUIRED_FIELDS = {"title", "category", "due_date", "consequence_level", "recurrence", "auto_renew"}


def _column_values(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in data.items()}


def can_view(user: User, deadline: Deadline) -> bool:
    if deadline.user_id == user.id:
        return True
    return deadline.organization_id is not None and deadline.organization_id == user.organization_id


def can_modify(user: User, deadline: Deadline) -> bool:
    if deadline.user_id == user.id:
        return True
    return user.is_org_admin(deadline.organization_id)


class DeadlineRepository:
    def __init__(self, session: Session):
        self.session = session

    # ============================================================
    # Reads
    # ============================================================
    def list_visible(self, user: User, category: Optional[str] = None) -> List[Deadline]:
        visibility = Deadline.user_id == user.id
        if user.organization_id is not None:
            visibility = or_(visibility, Deadline.organization_id == user.organization_id)

        statement = select(Deadline).where(visibility)
        if category:
            statement = statement.where(Deadline.category == category)
        return list(self.session.exec(statement).all())

    def get_visible(self, user: User, deadline_id: int) -> Deadline:
        deadline = self.session.get(Deadline, deadline_id)
        # Invisible rows are reported as missing
        if not deadline or not can_view(user, deadline):
            raise NotFoundError("Deadline not found")
        return deadline

    def get_modifiable(self, user: User, deadline_id: int) -> Deadline:
        deadline = self.get_visible(user, deadline_id)
        if not can_modify(user, deadline):
            raise PermissionDeniedError("Only the owner or an organization admin can change this deadline")
        return deadline

    def count_owned(self, user_id: int) -> int:
        return self.session.exec(select(func.count(Deadline.id)).where(Deadline.user_id == user_id)).one()

    def count_created_since(self, user_id: int, since: datetime) -> int:
        return self.session.exec(
            select(func.count(Deadline.id)).where(Deadline.user_id == user_id, Deadline.created_at > since)
        ).one()

    def find_child(self, parent_id: int) -> Optional[Deadline]:
        return self.session.exec(select(Deadline).where(Deadline.parent_deadline_id == parent_id)).first()

    def list_reminder_candidates(self, today: date) -> List[Deadline]:
        """Deadlines due today or later."""
        return list(self.session.exec(select(Deadline).where(Deadline.due_date >= today)).all())

    # ============================================================
    # Guards
    # ============================================================
    def check_can_create(self, user: User, recurring: bool, now: Optional[datetime] = None) -> None:
        tier = get_user_tier(self.session, user)
        limits = get_plan_limits(tier)

        if recurring and not limits.recurring:
            raise PlanFeatureError("recurring deadlines", tier.value)

        self.check_quota(user)
        self.check_rate_limit(user.id, now)

    def check_quota(self, user: User) -> None:
        tier = get_user_tier(self.session, user)
        limits = get_plan_limits(tier)
        owned = self.count_owned(user.id)
        if not within_limit(limits.deadlines, owned):
            raise QuotaExceededError("deadlines", limits.deadlines, tier.value)

    def check_rate_limit(self, user_id: int, now: Optional[datetime] = None) -> None:
        """Every insert counts, renewals included."""
        now = now or datetime.utcnow()
        recent = self.count_created_since(user_id, now - RATE_LIMIT_WINDOW)
        if recent >= RATE_LIMIT_MAX_DEADLINES:
            logger.warning("⛔ Rate limit hit for user %s (%s deadlines in 24h)", user_id, recent)
            raise RateLimitExceededError(RATE_LIMIT_MAX_DEADLINES, int(RATE_LIMIT_WINDOW.total_seconds() // 3600))

    def _organization_for_share(self, user: User, share: bool) -> Optional[int]:
        if not share:
            return None
        if not user.organization_id:
            raise ValidationFailedError("You must belong to an organization to share deadlines")
        return user.organization_id

    # ============================================================
    # Writes
    # ============================================================
    def create(self, user: User, fields: Dict[str, Any], share: bool = False,
               now: Optional[datetime] = None) -> Deadline:
        now = now or datetime.utcnow()
        fields = _column_values(fields)
        recurring = fields.get("recurrence", RecurrencePattern.NONE.value) != RecurrencePattern.NONE.value

        self.check_can_create(user, recurring, now)

        deadline = Deadline(
            **fields,
            user_id=user.id,
            organization_id=self._organization_for_share(user, share),
            created_at=now,
            updated_at=now,
        )
        self.session.add(deadline)
        self.session.commit()
        self.session.refresh(deadline)
        logger.info("✅ Deadline %s created by user %s (due %s)", deadline.id, user.id, deadline.due_date)
        return deadline

    def update(self, user: User, deadline_id: int, changes: Dict[str, Any],
               share: Optional[bool] = None) -> Deadline:
        deadline = self.get_modifiable(user, deadline_id)
        changes = _column_values(changes)
        for name in REQUIRED_FIELDS & changes.keys():
            if changes[name] is None:
                raise ValidationFailedError(f"{name} cannot be empty")

        new_recurrence = changes.get("recurrence")
        if (
            new_recurrence
            and new_recurrence != RecurrencePattern.NONE.value
            and deadline.recurrence == RecurrencePattern.NONE.value
        ):
            tier = get_user_tier(self.session, user)
            if not get_plan_limits(tier).recurring:
                raise PlanFeatureError("recurring deadlines", tier.value)

        auto_renew = changes.get("auto_renew", deadline.auto_renew)
        recurrence = changes.get("recurrence") or deadline.recurrence
        if auto_renew and recurrence == RecurrencePattern.NONE.value:
            raise ValidationFailedError("auto_renew requires a recurrence pattern")

        for key, value in changes.items():
            setattr(deadline, key, value)

        if share is not None:
            if deadline.user_id != user.id:
                raise PermissionDeniedError("Only the owner can change sharing")
            deadline.organization_id = self._organization_for_share(user, share)

        deadline.updated_at = datetime.utcnow()
        self.session.add(deadline)
        self.session.commit()
        self.session.refresh(deadline)
        return deadline

    def delete(self, user: User, deadline_id: int) -> None:
        deadline = self.get_modifiable(user, deadline_id)

        # Successors keep existing, unlinked from the deleted predecessor
        for child in self.session.exec(select(Deadline).where(Deadline.parent_deadline_id == deadline.id)).all():
            child.parent_deadline_id = None
            self.session.add(child)

        self.session.delete(deadline)
        self.session.commit()
        logger.info("🗑️ Deadline %s deleted by user %s", deadline_id, user.id)

    def mark_reminder_sent(self, deadline: Deadline, sent_at: datetime) -> None:
        deadline.last_reminder_sent = sent_at
        self.session.add(deadline)
        self.session.commit()

    # ============================================================
    # Recurrence
    # ============================================================
    def renew(self, deadline: Deadline, enforce_quota: bool = False,
              now: Optional[datetime] = None) -> Deadline:
        """
        Create the next occurrence of a recurring deadline.

        A deadline has at most one successor; a second call raises ConflictError.
        The owner's rolling rate limit always applies. ``enforce_quota`` adds the
        plan's deadline ceiling, for renewals a user triggers by hand.
        """
        pattern = RecurrencePattern(deadline.recurrence)
        if pattern == RecurrencePattern.NONE:
            raise ValidationFailedError("Only recurring deadlines can be renewed")

        existing = self.find_child(deadline.id)
        if existing:
            raise ConflictError(
                "This deadline has already been renewed",
                details={"successor_id": existing.id},
            )

        now = now or datetime.utcnow()
        if enforce_quota:
            owner = self.session.get(User, deadline.user_id)
            if owner:
                self.check_quota(owner)
        self.check_rate_limit(deadline.user_id, now)

        successor = Deadline(
            **{name: getattr(deadline, name) for name in INHERITED_FIELDS},
            due_date=next_due_date(deadline.due_date, pattern, deadline.recurrence_interval_days),
            parent_deadline_id=deadline.id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(successor)
        self.session.commit()
        self.session.refresh(successor)
        logger.info("🔁 Deadline %s renewed as %s (due %s)", deadline.id, successor.id, successor.due_date)
        return successor

    def renew_due_auto_renewals(self, today: date) -> List[Deadline]:
        """Renew every auto-renew deadline whose due date has passed and has no successor yet."""
        candidates = self.session.exec(
            select(Deadline).where(
                Deadline.auto_renew == True,  # noqa: E712
                Deadline.recurrence != RecurrencePattern.NONE.value,
                Deadline.due_date < today,
            )
        ).all()

        created: List[Deadline] = []
        for deadline in candidates:
            if self.find_child(deadline.id):
                continue
            try:
                created.append(self.renew(deadline))
            except RateLimitExceededError:
                # Retried on a later run once the window has room
                logger.warning("⏳ Renewal of deadline %s deferred by rate limit", deadline.id)
            except Exception as e:
                self.session.rollback()
                logger.exception("❌ Failed to renew deadline %s: %s", deadline.id, e)

        logger.info("🔁 Auto-renewal run: %s candidates, %s renewed", len(candidates), len(created))
        return created
