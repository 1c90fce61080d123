from .deadline_schema import DeadlineCreate, DeadlineRead, DeadlineUpdate, DeadlineSummary
from .invitation_schema import InvitationCreate, InvitationRead, InvitationValidation
from .job_schema import ReminderRunResponse, RenewalRunResponse
from .organization_schema import (
    OrganizationCreate, OrganizationRead, OrganizationUpdate,
    OrganizationMember, OrganizationMemberCountRead,
)
from .payment_schema import (
    CheckoutSessionRequest, CheckoutSessionResponse, WebhookAck,
    SubscriptionRead, PlanLimitsRead, UsageRead, UserLimitsRead, PlansRead,
)
from .profile_schema import ProfileRead, ProfileUpdate
from .template_schema import TemplateRead, DeadlineFromTemplate
from .user_schema import UserCreate, UserLogin, UserRead, AuthResponse

__all__ = [
    # Deadline
    "DeadlineCreate", "DeadlineRead", "DeadlineUpdate", "DeadlineSummary",

    # Invitation
    "InvitationCreate", "InvitationRead", "InvitationValidation",

    # Jobs
    "ReminderRunResponse", "RenewalRunResponse",

    # Organization
    "OrganizationCreate", "OrganizationRead", "OrganizationUpdate",
    "OrganizationMember", "OrganizationMemberCountRead",

    # Payment
    "CheckoutSessionRequest", "CheckoutSessionResponse", "WebhookAck",
    "SubscriptionRead", "PlanLimitsRead", "UsageRead", "UserLimitsRead", "PlansRead",

    # Profile
    "ProfileRead", "ProfileUpdate",

    # Template
    "TemplateRead", "DeadlineFromTemplate",

    # User
    "UserCreate", "UserLogin", "UserRead", "AuthResponse",
]
