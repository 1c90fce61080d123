# routes/profile.py
from fastapi import APIRouter, Depends
from sqlmodel import Session
from datetime import datetime
import logging

from core.database import get_session
from core.payment_utils import get_user_tier
from core.security import get_current_user
from models.models import Organization, User
from schemas.profile_schema import ProfileRead, ProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["Profile"])


def serialize_profile(user: User, session: Session) -> ProfileRead:
    organization = session.get(Organization, user.organization_id) if user.organization_id else None
    return ProfileRead(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        organization_id=user.organization_id,
        organization_name=organization.name if organization else None,
        plan_tier=get_user_tier(session, user),
        created_at=user.created_at,
    )


# ==================================================================
#  ✅  Get Current User Profile
# ==================================================================
@router.get("/me", response_model=ProfileRead)
def get_my_profile(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Return the current user's profile, organization and plan."""
    return serialize_profile(current_user, session)


# ==================================================================
#  ✅  Update Current User Profile
# ==================================================================
@router.put("/me", response_model=ProfileRead)
def update_my_profile(
    profile_update: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if profile_update.name is not None:
        current_user.name = profile_update.name.strip()
    current_user.updated_at = datetime.utcnow()

    session.add(current_user)
    session.commit()
    session.refresh(current_user)
    logger.info("👤 Profile updated for user %s", current_user.id)
    return serialize_profile(current_user, session)
