# routes/deadlines.py
from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel import Session
from typing import List, Optional
from datetime import date, datetime

from core.database import get_session
from core.deadline_utils import (
    count_by_category,
    group_by_status,
    overall_urgency,
    sort_by_urgency,
    urgency_message,
)
from core.security import get_current_user
from models.models import DeadlineCategory, DeadlineStatus, User
from schemas.deadline_schema import DeadlineCreate, DeadlineRead, DeadlineSummary, DeadlineUpdate
from services.deadline_service import DeadlineRepository

router = APIRouter(prefix="/deadlines", tags=["Deadlines"])


def get_today() -> date:
    """Reference date for urgency on reads."""
    return datetime.utcnow().date()


def get_repository(session: Session = Depends(get_session)) -> DeadlineRepository:
    return DeadlineRepository(session)


# ==================================================================
#  ✅ LIST DEADLINES (most urgent first)
# ==================================================================
@router.get("/", response_model=List[DeadlineRead])
def list_deadlines(
    status_filter: Optional[DeadlineStatus] = Query(default=None, alias="status"),
    category: Optional[DeadlineCategory] = Query(default=None),
    current_user: User = Depends(get_current_user),
    repository: DeadlineRepository = Depends(get_repository),
    today: date = Depends(get_today),
):
    deadlines = repository.list_visible(current_user, category.value if category else None)
    reads = [DeadlineRead.from_deadline(d, today) for d in sort_by_urgency(deadlines, today)]
    if status_filter:
        reads = [read for read in reads if read.status == status_filter]
    return reads


# ==================================================================
#  ✅ DASHBOARD SUMMARY
# ==================================================================
@router.get("/summary", response_model=DeadlineSummary)
def deadline_summary(
    current_user: User = Depends(get_current_user),
    repository: DeadlineRepository = Depends(get_repository),
    today: date = Depends(get_today),
):
    deadlines = repository.list_visible(current_user)
    groups = group_by_status(deadlines, today)
    overall = overall_urgency(deadlines, today)
    return DeadlineSummary(
        total=len(deadlines),
        counts={tier.value: len(items) for tier, items in groups.items()},
        by_category=count_by_category(deadlines),
        overall_status=overall,
        message=urgency_message(overall, len(groups[overall])),
    )


# ==================================================================
#  ✅ CREATE DEADLINE
# ==================================================================
@router.post("/", response_model=DeadlineRead, status_code=status.HTTP_201_CREATED)
def create_deadline(
    deadline_in: DeadlineCreate,
    current_user: User = Depends(get_current_user),
    repository: DeadlineRepository = Depends(get_repository),
    today: date = Depends(get_today),
):
    fields = deadline_in.model_dump(exclude={"share_with_organization"})
    deadline = repository.create(current_user, fields, share=deadline_in.share_with_organization)
    return DeadlineRead.from_deadline(deadline, today)


# ==================================================================
#  ✅ GET / UPDATE / DELETE
# ==================================================================
@router.get("/{deadline_id}", response_model=DeadlineRead)
def get_deadline(
    deadline_id: int,
    current_user: User = Depends(get_current_user),
    repository: DeadlineRepository = Depends(get_repository),
    today: date = Depends(get_today),
):
    return DeadlineRead.from_deadline(repository.get_visible(current_user, deadline_id), today)


@router.put("/{deadline_id}", response_model=DeadlineRead)
def update_deadline(
    deadline_id: int,
    deadline_update: DeadlineUpdate,
    current_user: User = Depends(get_current_user),
    repository: DeadlineRepository = Depends(get_repository),
    today: date = Depends(get_today),
):
    changes = deadline_update.model_dump(exclude_unset=True, exclude={"share_with_organization"})
    deadline = repository.update(
        current_user,
        deadline_id,
        changes,
        share=deadline_update.share_with_organization,
    )
    return DeadlineRead.from_deadline(deadline, today)


@router.delete("/{deadline_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_deadline(
    deadline_id: int,
    current_user: User = Depends(get_current_user),
    repository: DeadlineRepository = Depends(get_repository),
):
    repository.delete(current_user, deadline_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================================================================
#  ✅ RENEW (create next occurrence)
# ==================================================================
@router.post("/{deadline_id}/renew", response_model=DeadlineRead, status_code=status.HTTP_201_CREATED)
def renew_deadline(
    deadline_id: int,
    current_user: User = Depends(get_current_user),
    repository: DeadlineRepository = Depends(get_repository),
    today: date = Depends(get_today),
):
    """Create the next occurrence now. A deadline can only be renewed once."""
    deadline = repository.get_modifiable(current_user, deadline_id)
    return DeadlineRead.from_deadline(repository.renew(deadline, enforce_quota=True), today)
