# routes/invitation.py
import logging
from datetime import datetime, timedelta
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from core.config import settings
from core.database import get_session
from core.exceptions import QuotaExceededError
from core.payment_utils import get_plan_limits, get_user_tier, within_limit
from core.security import get_current_org_admin, get_current_user
from models.models import Invitation, InvitationStatus, Organization, User
from routes.organization import count_members, count_pending_invitations
from schemas.invitation_schema import InvitationCreate, InvitationRead, InvitationValidation
from services.email_service import EmailService, get_email_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invitations", tags=["Invitations"])


# -----------------------
# Helpers
# -----------------------
def _build_invitation_link(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/accept-invitation?token={token}"


def _get_by_token(session: Session, token: str) -> Invitation:
    invitation = session.exec(select(Invitation).where(Invitation.token == token)).first()
    if not invitation:
        raise HTTPException(status_code=404, detail="Invalid invitation link.")
    return invitation


def _expire_if_stale(session: Session, invitation: Invitation) -> None:
    if invitation.status == InvitationStatus.PENDING.value and invitation.is_expired():
        invitation.status = InvitationStatus.EXPIRED.value
        session.add(invitation)
        session.commit()


# ==================================================================
# Create / Send Invitation
# ==================================================================
@router.post("/", response_model=InvitationRead, status_code=status.HTTP_201_CREATED)
def invite(
    invite_in: InvitationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_org_admin),
    session: Session = Depends(get_session),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Invite someone to the admin's organization.

    The invitation row is stored first; the email goes out in the background
    and a failed send does not remove the invitation.
    """
    org_id = current_user.organization_id
    email = invite_in.email.lower()

    existing_member = session.exec(
        select(User).where(User.email == email, User.organization_id == org_id)
    ).first()
    if existing_member:
        raise HTTPException(status_code=400, detail="This person is already a member of your organization.")

    pending = session.exec(
        select(Invitation).where(
            Invitation.email == email,
            Invitation.organization_id == org_id,
            Invitation.status == InvitationStatus.PENDING.value,
            Invitation.expires_at > datetime.utcnow(),
        )
    ).first()
    if pending:
        raise HTTPException(status_code=400, detail="An active invitation already exists for this email.")

    # Seats = members + outstanding invitations
    tier = get_user_tier(session, current_user)
    limit = get_plan_limits(tier).team_members
    seats = count_members(session, org_id) + count_pending_invitations(session, org_id)
    if not within_limit(limit, seats):
        raise QuotaExceededError("team_members", limit, tier.value)

    invitation = Invitation(
        organization_id=org_id,
        email=email,
        role=invite_in.role.value,
        invited_by_id=current_user.id,
        expires_at=datetime.utcnow() + timedelta(days=settings.INVITATION_VALID_DAYS),
    )
    try:
        session.add(invitation)
        session.commit()
        session.refresh(invitation)
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Database error while saving invitation for %s: %s", email, e)
        raise HTTPException(status_code=500, detail="Database error while creating the invitation.")

    organization = session.get(Organization, org_id)
    background_tasks.add_task(
        email_service.send_invitation_email,
        email,
        _build_invitation_link(invitation.token),
        invitation.role,
        organization.name if organization else "Your Organization",
        current_user.name or current_user.email,
        settings.INVITATION_VALID_DAYS,
    )
    logger.info("✉️ Invitation %s created for %s (org %s)", invitation.id, email, org_id)
    return invitation


# ==================================================================
# List invitations (admin)
# ==================================================================
@router.get("/", response_model=List[InvitationRead])
def list_invitations(
    current_user: User = Depends(get_current_org_admin),
    session: Session = Depends(get_session),
):
    return session.exec(
        select(Invitation)
        .where(Invitation.organization_id == current_user.organization_id)
        .order_by(Invitation.created_at.desc())
    ).all()


# ==================================================================
# Validate invitation token (public)
# ==================================================================
@router.get("/validate/{token}", response_model=InvitationValidation)
def validate_invitation(token: str, session: Session = Depends(get_session)):
    invitation = _get_by_token(session, token)
    _expire_if_stale(session, invitation)

    if invitation.status != InvitationStatus.PENDING.value:
        return InvitationValidation(valid=False, reason=f"Invitation is {invitation.status}")

    organization = session.get(Organization, invitation.organization_id)
    inviter = session.get(User, invitation.invited_by_id)
    return InvitationValidation(
        valid=True,
        email=invitation.email,
        role=invitation.role,
        organization_name=organization.name if organization else None,
        invited_by=inviter.name if inviter else None,
        expires_at=invitation.expires_at,
    )


# ==================================================================
# Accept invitation (logged-in invitee)
# ==================================================================
@router.post("/accept/{token}", response_model=InvitationRead)
def accept_invitation(
    token: str,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    invitation = _get_by_token(session, token)
    _expire_if_stale(session, invitation)

    if invitation.status == InvitationStatus.EXPIRED.value:
        raise HTTPException(status_code=400, detail="This invitation has expired. Please request a new one.")
    if invitation.status != InvitationStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="This invitation has already been used.")
    if invitation.email.lower() != current_user.email.lower():
        raise HTTPException(status_code=403, detail="This invitation was sent to a different email address.")
    if current_user.organization_id and current_user.organization_id != invitation.organization_id:
        raise HTTPException(status_code=400, detail="Leave your current organization before joining another.")

    now = datetime.utcnow()
    current_user.organization_id = invitation.organization_id
    current_user.role = invitation.role
    current_user.updated_at = now
    invitation.status = InvitationStatus.ACCEPTED.value
    invitation.accepted_at = now

    session.add(current_user)
    session.add(invitation)
    session.commit()
    session.refresh(invitation)
    logger.info("🤝 User %s joined organization %s", current_user.id, invitation.organization_id)
    return invitation


# ==================================================================
# Revoke invitation (admin)
# ==================================================================
@router.delete("/{invitation_id}", status_code=status.HTTP_200_OK)
def revoke_invitation(
    invitation_id: int,
    current_user: User = Depends(get_current_org_admin),
    session: Session = Depends(get_session),
):
    invitation = session.exec(
        select(Invitation).where(
            Invitation.id == invitation_id,
            Invitation.organization_id == current_user.organization_id,
        )
    ).first()
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found in your organization.")
    if invitation.status == InvitationStatus.ACCEPTED.value:
        raise HTTPException(status_code=400, detail="Cannot revoke an invitation that has already been accepted.")

    session.delete(invitation)
    session.commit()
    return {"message": "Invitation revoked successfully."}
