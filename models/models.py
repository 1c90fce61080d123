# models/models.py
from typing import Optional, List
from datetime import date, datetime, timedelta
from enum import Enum
import uuid

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint


# ============================================================
# ENUMS
# ============================================================
class UserRole(str, Enum):
    INDIVIDUAL = "individual"
    ORG_ADMIN = "org_admin"
    ORG_MEMBER = "org_member"


class DeadlineCategory(str, Enum):
    LICENSE = "license"
    INSURANCE = "insurance"
    CONTRACT = "contract"
    PERSONAL = "personal"
    OTHER = "other"


class ConsequenceLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RecurrencePattern(str, Enum):
    NONE = "none"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi_annual"
    ANNUAL = "annual"
    BIENNIAL = "biennial"
    CUSTOM = "custom"


class DeadlineStatus(str, Enum):
    """Urgency tier. Derived on read, never stored."""
    OVERDUE = "overdue"
    CRITICAL = "critical"
    URGENT = "urgent"
    WARNING = "warning"
    UPCOMING = "upcoming"
    SAFE = "safe"


class PlanTier(str, Enum):
    FREE = "free"
    PRO = "pro"
    TEAM = "team"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


# ============================================================
# ORGANIZATION (tenant)
# ============================================================
class Organization(SQLModel, table=True):
    __tablename__ = "organization"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    industry: Optional[str] = Field(default=None, max_length=100)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    users: List["User"] = Relationship(back_populates="organization")
    invitations: List["Invitation"] = Relationship(back_populates="organization")


# ============================================================
# USER (profile)
# ============================================================
class User(SQLModel, table=True):
    __tablename__ = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(index=True, unique=True, max_length=255, nullable=False)
    password_hash: str = Field(nullable=False)

    role: str = Field(default=UserRole.INDIVIDUAL.value, max_length=20, index=True)
    is_active: bool = Field(default=True)

    stripe_customer_id: Optional[str] = Field(default=None, max_length=255, unique=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    organization_id: Optional[int] = Field(default=None, foreign_key="organization.id", index=True)
    organization: Optional["Organization"] = Relationship(back_populates="users")

    def is_org_admin(self, organization_id: Optional[int]) -> bool:
        return (
            organization_id is not None
            and self.organization_id == organization_id
            and self.role == UserRole.ORG_ADMIN.value
        )


# ============================================================
# DEADLINE
# ============================================================
class Deadline(SQLModel, table=True):
    __tablename__ = "deadline"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: str = Field(default=DeadlineCategory.OTHER.value, max_length=20, index=True)
    subcategory: Optional[str] = Field(default=None, max_length=100)

    # Calendar date, no time component
    due_date: date = Field(index=True)
    consequence_level: str = Field(default=ConsequenceLevel.MEDIUM.value, max_length=20, index=True)

    # Tenant scoping
    user_id: int = Field(foreign_key="user.id", index=True)
    organization_id: Optional[int] = Field(default=None, foreign_key="organization.id", index=True)

    # Set only by the reminder dispatcher after a confirmed send
    last_reminder_sent: Optional[datetime] = None

    # Recurrence
    recurrence: str = Field(default=RecurrencePattern.NONE.value, max_length=20, index=True)
    recurrence_interval_days: Optional[int] = None
    parent_deadline_id: Optional[int] = Field(default=None, foreign_key="deadline.id", index=True)
    auto_renew: bool = Field(default=False)

    # Display-only metadata
    renewal_instructions: Optional[str] = None
    estimated_cost: Optional[float] = None
    reference_number: Optional[str] = Field(default=None, max_length=100)
    issuing_authority: Optional[str] = Field(default=None, max_length=200)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================
# INVITATION
# ============================================================
class Invitation(SQLModel, table=True):
    __tablename__ = "invitation"

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(foreign_key="organization.id", index=True)
    email: str = Field(max_length=255, index=True)
    role: str = Field(default=UserRole.ORG_MEMBER.value, max_length=20)
    invited_by_id: int = Field(foreign_key="user.id")
    status: str = Field(default=InvitationStatus.PENDING.value, max_length=20, index=True)
    token: str = Field(default_factory=lambda: str(uuid.uuid4()), max_length=64, unique=True, index=True)
    expires_at: datetime = Field(default_factory=lambda: datetime.utcnow() + timedelta(days=7))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    accepted_at: Optional[datetime] = None

    organization: Optional["Organization"] = Relationship(back_populates="invitations")

    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at


# ============================================================
# SUBSCRIPTION (mirrors Stripe billing state)
# ============================================================
class Subscription(SQLModel, table=True):
    __tablename__ = "subscription"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    organization_id: Optional[int] = Field(default=None, foreign_key="organization.id", index=True)

    # Upsert key for webhook processing
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255, unique=True, index=True)
    stripe_price_id: Optional[str] = Field(default=None, max_length=255)

    plan_tier: str = Field(default=PlanTier.FREE.value, max_length=20)
    status: str = Field(default=SubscriptionStatus.TRIALING.value, max_length=20, index=True)
    trial_ends_at: Optional[datetime] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = Field(default=False)
    canceled_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================
# WEBHOOK EVENT LOG
# ============================================================
class WebhookEvent(SQLModel, table=True):
    __tablename__ = "webhook_event"

    id: Optional[int] = Field(default=None, primary_key=True)
    stripe_event_id: str = Field(unique=True, index=True, max_length=255)
    event_type: str = Field(max_length=100, index=True)

    payload: str = Field()
    processed: bool = Field(default=False)
    processing_error: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================
# DEADLINE TEMPLATE (pre-built deadline types)
# ============================================================
class DeadlineTemplate(SQLModel, table=True):
    __tablename__ = "deadline_template"
    __table_args__ = (UniqueConstraint("name", name="uq_template_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    description: Optional[str] = None
    category: str = Field(max_length=20, index=True)
    subcategory: Optional[str] = Field(default=None, max_length=100)
    default_consequence_level: str = Field(default=ConsequenceLevel.MEDIUM.value, max_length=20)
    typical_recurrence: str = Field(default=RecurrencePattern.ANNUAL.value, max_length=20)
    typical_lead_time_days: int = Field(default=30)

    # Comma-separated, e.g. "construction,engineering"
    industries: str = Field(default="")

    issuing_authority_template: Optional[str] = None
    renewal_instructions_template: Optional[str] = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def industry_list(self) -> List[str]:
        return [item for item in self.industries.split(",") if item]
