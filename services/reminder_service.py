# ================================================================
# services/reminder_service.py — Deadline reminder dispatcher
# ================================================================
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from sqlmodel import Session

from core.deadline_utils import days_until_due, should_remind
from models.models import Deadline, User
from services.deadline_service import DeadlineRepository
from services.email_service import EmailService

logger = logging.getLogger(__name__)


@dataclass
class ReminderRunResult:
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    total: int = 0

    @property
    def message(self) -> str:
        return f"Sent {self.sent} reminders, skipped {self.skipped}, failed {self.failed}"


class ReminderDispatcher:
    """
    Walks every deadline due today or later and emails the owner when the
    deadline sits on a reminder window and no reminder went out in the last
    24 hours. ``last_reminder_sent`` only moves after SendGrid accepts the
    message, so a failed send is retried on the next run.
    """

    def __init__(self, session: Session, email_service: EmailService,
                 repository: Optional[DeadlineRepository] = None):
        self.session = session
        self.email_service = email_service
        self.repository = repository or DeadlineRepository(session)

    def run(self, now: Optional[datetime] = None) -> ReminderRunResult:
        now = now or datetime.utcnow()
        today = now.date()
        deadlines = self.repository.list_reminder_candidates(today)

        result = ReminderRunResult(total=len(deadlines))
        logger.info("📋 Checking %s deadlines for reminders", result.total)

        for deadline in deadlines:
            deadline_id = deadline.id
            try:
                days = days_until_due(deadline.due_date, today)
                if not should_remind(days, deadline.last_reminder_sent, now):
                    result.skipped += 1
                    continue

                if self._dispatch(deadline, days, now):
                    result.sent += 1
                else:
                    result.failed += 1
            except Exception as e:
                # One bad deadline must not stop the rest of the run
                self.session.rollback()
                result.failed += 1
                logger.exception("❌ Reminder for deadline %s failed: %s", deadline_id, e)

        logger.info("✅ Reminder run finished: %s", result.message)
        return result

    def _dispatch(self, deadline: Deadline, days: int, now: datetime) -> bool:
        owner = self.session.get(User, deadline.user_id)
        if not owner or not owner.email:
            logger.error("❌ No recipient for deadline %s (user %s)", deadline.id, deadline.user_id)
            return False

        if not self.email_service.send_deadline_reminder(owner.email, owner.name, deadline, days):
            logger.error("❌ Reminder for deadline %s to %s was not accepted", deadline.id, owner.email)
            return False

        try:
            self.repository.mark_reminder_sent(deadline, now)
        except Exception as e:
            # The email is out; a missed timestamp only risks a repeat next run
            self.session.rollback()
            logger.exception("⚠️ Reminder sent for deadline %s but timestamp not saved: %s", deadline.id, e)
        else:
            logger.info("✅ Reminder sent for '%s' (%s days) to %s", deadline.title, days, owner.email)
        return True
