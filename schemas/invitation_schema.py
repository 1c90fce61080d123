from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from models.models import InvitationStatus, UserRole


# ============================================================
# ✅ Create Invitation (input)
# ============================================================
class InvitationCreate(BaseModel):
    email: EmailStr
    role: UserRole = UserRole.ORG_MEMBER
    # organization_id and invited_by_id are set server-side
    # token and expiry are generated server-side

    @field_validator("role")
    @classmethod
    def check_role(cls, value: UserRole) -> UserRole:
        if value == UserRole.INDIVIDUAL:
            raise ValueError("Invitations are for org_admin or org_member")
        return value


# ============================================================
# ✅ Read Invitation (output)
# ============================================================
class InvitationRead(BaseModel):
    id: int
    email: EmailStr
    token: str
    role: str
    status: InvitationStatus
    expires_at: datetime
    created_at: datetime

    invited_by_id: Optional[int] = None
    accepted_at: Optional[datetime] = None
    organization_id: int

    model_config = ConfigDict(from_attributes=True)


# ============================================================
# ✅ Token validation (public)
# ============================================================
class InvitationValidation(BaseModel):
    valid: bool
    email: Optional[EmailStr] = None
    role: Optional[str] = None
    organization_name: Optional[str] = None
    invited_by: Optional[str] = None
    expires_at: Optional[datetime] = None
    reason: Optional[str] = Field(default=None, description="Why the token cannot be used")
