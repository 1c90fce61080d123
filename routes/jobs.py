# routes/jobs.py
"""Endpoints invoked by an external scheduler (cron, Cloud Scheduler, etc.)."""
from fastapi import APIRouter, Depends
from sqlmodel import Session
from datetime import datetime
import logging

from core.database import get_session
from core.security import verify_cron_secret
from routes.deadlines import get_repository
from schemas.job_schema import ReminderRunResponse, RenewalRunResponse
from services.deadline_service import DeadlineRepository
from services.email_service import EmailService, get_email_service
from services.reminder_service import ReminderDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"], dependencies=[Depends(verify_cron_secret)])


def get_now() -> datetime:
    return datetime.utcnow()


@router.post("/send-deadline-reminders", response_model=ReminderRunResponse)
def send_deadline_reminders(
    session: Session = Depends(get_session),
    repository: DeadlineRepository = Depends(get_repository),
    email_service: EmailService = Depends(get_email_service),
    now: datetime = Depends(get_now),
):
    result = ReminderDispatcher(session, email_service, repository).run(now)
    return ReminderRunResponse(
        success=True,
        message=result.message,
        reminders_sent=result.sent,
        reminders_skipped=result.skipped,
        reminders_failed=result.failed,
        total_deadlines=result.total,
    )


@router.post("/renew-recurring-deadlines", response_model=RenewalRunResponse)
def renew_recurring_deadlines(
    repository: DeadlineRepository = Depends(get_repository),
    now: datetime = Depends(get_now),
):
    created = repository.renew_due_auto_renewals(now.date())
    return RenewalRunResponse(
        success=True,
        message=f"Created {len(created)} renewed deadlines",
        renewed=len(created),
        created_ids=[deadline.id for deadline in created],
    )
