# routes/organization.py
from fastapi import APIRouter, HTTPException, Depends, status
from sqlmodel import Session, select, func
from typing import List
from datetime import datetime
import logging

from core.database import get_session
from core.payment_utils import get_plan_limits, get_user_tier, within_limit
from core.security import get_current_user, get_current_org_admin
from models.models import Deadline, Invitation, InvitationStatus, Organization, User, UserRole
from schemas.organization_schema import (
    OrganizationCreate,
    OrganizationMember,
    OrganizationMemberCountRead,
    OrganizationRead,
    OrganizationUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["Organizations"])


# -----------------------
# Helpers
# -----------------------
def count_members(session: Session, org_id: int) -> int:
    return session.exec(select(func.count(User.id)).where(User.organization_id == org_id)).one()


def count_pending_invitations(session: Session, org_id: int) -> int:
    return session.exec(
        select(func.count(Invitation.id)).where(
            Invitation.organization_id == org_id,
            Invitation.status == InvitationStatus.PENDING.value,
            Invitation.expires_at > datetime.utcnow(),
        )
    ).one()


def detach_from_organization(session: Session, user: User) -> None:
    """Return a user to an individual account; their shared deadlines become private."""
    org_id = user.organization_id
    for deadline in session.exec(
        select(Deadline).where(Deadline.user_id == user.id, Deadline.organization_id == org_id)
    ).all():
        deadline.organization_id = None
        session.add(deadline)

    user.organization_id = None
    user.role = UserRole.INDIVIDUAL.value
    user.updated_at = datetime.utcnow()
    session.add(user)


def _get_my_organization(session: Session, user: User) -> Organization:
    organization = session.get(Organization, user.organization_id) if user.organization_id else None
    if not organization:
        raise HTTPException(status_code=404, detail="You are not part of an organization")
    return organization


# ==================================================================
#  ✅ CREATE ORGANIZATION
# ==================================================================
@router.post("/", response_model=OrganizationRead, status_code=status.HTTP_201_CREATED)
def create_organization(
    organization_in: OrganizationCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Create an organization; the caller becomes its admin."""
    if current_user.organization_id:
        raise HTTPException(status_code=400, detail="You already belong to an organization")

    organization = Organization(name=organization_in.name.strip(), industry=organization_in.industry)
    session.add(organization)
    session.commit()
    session.refresh(organization)

    current_user.organization_id = organization.id
    current_user.role = UserRole.ORG_ADMIN.value
    current_user.updated_at = datetime.utcnow()
    session.add(current_user)
    session.commit()

    logger.info("🏢 Organization %s created by user %s", organization.id, current_user.id)
    return organization


# ==================================================================
#  ✅ GET / UPDATE MY ORGANIZATION
# ==================================================================
@router.get("/me", response_model=OrganizationRead)
def get_my_organization(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Get current user's organization"""
    return _get_my_organization(session, current_user)


@router.put("/me", response_model=OrganizationRead)
def update_my_organization(
    organization_update: OrganizationUpdate,
    current_user: User = Depends(get_current_org_admin),
    session: Session = Depends(get_session)
):
    """Update current user's organization (admins only)"""
    organization = _get_my_organization(session, current_user)

    if organization_update.name is not None:
        organization.name = organization_update.name.strip()
    if organization_update.industry is not None:
        organization.industry = organization_update.industry
    organization.updated_at = datetime.utcnow()

    session.add(organization)
    session.commit()
    session.refresh(organization)
    return organization


# ==================================================================
#  ✅ MEMBERS
# ==================================================================
@router.get("/members", response_model=List[OrganizationMember])
def list_members(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    organization = _get_my_organization(session, current_user)
    return session.exec(select(User).where(User.organization_id == organization.id).order_by(User.name)).all()


@router.get("/members/count", response_model=OrganizationMemberCountRead)
def member_count(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    organization = _get_my_organization(session, current_user)
    members = count_members(session, organization.id)
    pending = count_pending_invitations(session, organization.id)
    limit = get_plan_limits(get_user_tier(session, current_user)).team_members
    return OrganizationMemberCountRead(
        organization_id=organization.id,
        total_members=members,
        pending_invitations=pending,
        member_limit=limit,
        can_add_more=within_limit(limit, members + pending),
    )


@router.delete("/members/{user_id}", status_code=status.HTTP_200_OK)
def remove_member(
    user_id: int,
    current_user: User = Depends(get_current_org_admin),
    session: Session = Depends(get_session),
):
    """Admins only: remove a member from the organization."""
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="Use /organizations/leave to leave the organization")

    member = session.get(User, user_id)
    if not member or member.organization_id != current_user.organization_id:
        raise HTTPException(status_code=404, detail="Member not found in your organization")

    detach_from_organization(session, member)
    session.commit()
    logger.info("👋 User %s removed from organization %s", user_id, current_user.organization_id)
    return {"message": "Member removed from organization."}


# ==================================================================
#  ✅ LEAVE ORGANIZATION
# ==================================================================
@router.post("/leave", status_code=status.HTTP_200_OK)
def leave_organization(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    organization = _get_my_organization(session, current_user)

    if current_user.role == UserRole.ORG_ADMIN.value:
        other_admins = session.exec(
            select(func.count(User.id)).where(
                User.organization_id == organization.id,
                User.role == UserRole.ORG_ADMIN.value,
                User.id != current_user.id,
            )
        ).one()
        if other_admins == 0 and count_members(session, organization.id) > 1:
            raise HTTPException(
                status_code=400,
                detail="Promote another admin before leaving: the organization still has members.",
            )

    detach_from_organization(session, current_user)
    session.commit()
    logger.info("👋 User %s left organization %s", current_user.id, organization.id)
    return {"message": "You have left the organization."}
