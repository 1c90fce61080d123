from datetime import timedelta

from conftest import CRON_HEADERS, NOW, RecordingEmailService, make_deadline, make_user
from models.models import Deadline
from services.deadline_service import DeadlineRepository
from services.email_service import build_reminder_subject
from services.reminder_service import ReminderDispatcher

TODAY = NOW.date()


def test_critical_deadline_in_three_days_is_reminded_once(session):
    user = make_user(session, "owner@example.com", name="Olivia")
    deadline = make_deadline(session, user, TODAY + timedelta(days=3), consequence_level="critical")
    email = RecordingEmailService()

    result = ReminderDispatcher(session, email).run(NOW)

    assert (result.sent, result.skipped, result.failed, result.total) == (1, 0, 0, 1)
    assert email.sent[0]["to"] == "owner@example.com"
    assert email.sent[0]["subject"] == "🚨 URGENT: Contractor License due in 3 days"
    session.refresh(deadline)
    assert deadline.last_reminder_sent == NOW

    # An hour later the same window does not fire again
    rerun = ReminderDispatcher(session, email).run(NOW + timedelta(hours=1))
    assert (rerun.sent, rerun.skipped) == (0, 1)
    assert len(email.sent) == 1


def test_elapsed_time_alone_decides_a_repeat(session):
    user = make_user(session)
    make_deadline(
        session, user, TODAY + timedelta(days=1),
        last_reminder_sent=NOW - timedelta(hours=30),
    )
    email = RecordingEmailService()

    result = ReminderDispatcher(session, email).run(NOW)

    assert result.sent == 1
    assert email.sent[0]["subject"].startswith("📌 TODAY: ")
    assert email.sent[0]["subject"].endswith("due in 1 day")


def test_failed_send_leaves_timestamp_for_retry(session):
    user = make_user(session)
    deadline = make_deadline(session, user, TODAY + timedelta(days=7))

    result = ReminderDispatcher(session, RecordingEmailService(succeed=False)).run(NOW)

    assert (result.sent, result.failed) == (0, 1)
    session.refresh(deadline)
    assert deadline.last_reminder_sent is None

    retry = ReminderDispatcher(session, RecordingEmailService()).run(NOW + timedelta(minutes=5))
    assert retry.sent == 1


def test_one_failure_does_not_abort_the_batch(session):
    user = make_user(session)
    # Owner row is gone
    session.add(Deadline(title="Orphan", due_date=TODAY + timedelta(days=14), user_id=9999))
    session.commit()
    make_deadline(session, user, TODAY + timedelta(days=30), title="Good")

    email = RecordingEmailService()
    result = ReminderDispatcher(session, email).run(NOW)

    assert (result.sent, result.failed, result.total) == (1, 1, 2)
    assert "Good" in email.sent[0]["subject"]


def test_off_window_and_past_deadlines(session):
    user = make_user(session)
    make_deadline(session, user, TODAY + timedelta(days=5), title="Off window")
    make_deadline(session, user, TODAY - timedelta(days=1), title="Overdue")
    make_deadline(session, user, TODAY, title="Due today")

    result = ReminderDispatcher(session, RecordingEmailService()).run(NOW)

    # Overdue rows are not candidates; day 0 is not a window
    assert (result.sent, result.skipped, result.total) == (0, 2, 2)


def test_subject_format_for_low_severity():
    deadline = Deadline(title="LEED Credential", due_date=TODAY, consequence_level="low", user_id=1)
    assert build_reminder_subject(deadline, 30) == "📝 Upcoming: LEED Credential due in 30 days"


class FlakyEmailService(RecordingEmailService):
    """Raises for one title, like a dropped SMTP connection."""

    def __init__(self, failing_title: str):
        super().__init__()
        self.failing_title = failing_title

    def send(self, to_email: str, subject: str, html_content: str) -> bool:
        if self.failing_title in subject:
            raise RuntimeError("smtp connection reset")
        return super().send(to_email, subject, html_content)


def test_raising_email_client_does_not_abort_the_batch(session):
    user = make_user(session)
    boom = make_deadline(session, user, TODAY + timedelta(days=7), title="Boom")
    make_deadline(session, user, TODAY + timedelta(days=14), title="Good")
    email = FlakyEmailService("Boom")

    result = ReminderDispatcher(session, email).run(NOW)

    assert (result.sent, result.failed, result.total) == (1, 1, 2)
    assert "Good" in email.sent[0]["subject"]
    session.refresh(boom)
    assert boom.last_reminder_sent is None


class OneDeadlineRepository(DeadlineRepository):
    def __init__(self, session, title):
        super().__init__(session)
        self.title = title

    def list_reminder_candidates(self, today):
        return [d for d in super().list_reminder_candidates(today) if d.title == self.title]


def test_dispatcher_uses_the_given_repository(session):
    user = make_user(session)
    make_deadline(session, user, TODAY + timedelta(days=7), title="Chosen")
    make_deadline(session, user, TODAY + timedelta(days=14), title="Ignored")
    email = RecordingEmailService()

    result = ReminderDispatcher(session, email, OneDeadlineRepository(session, "Chosen")).run(NOW)

    assert (result.sent, result.total) == (1, 1)
    assert "Chosen" in email.sent[0]["subject"]


# ------------------------
# Job endpoint
# ------------------------
def test_reminder_job_endpoint(client, session, email_service):
    user = make_user(session)
    make_deadline(session, user, TODAY + timedelta(days=7))
    make_deadline(session, user, TODAY + timedelta(days=8), title="Skipped")

    response = client.post("/jobs/send-deadline-reminders", headers=CRON_HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Sent 1 reminders, skipped 1, failed 0",
        "remindersSent": 1,
        "remindersSkipped": 1,
        "remindersFailed": 0,
        "totalDeadlines": 2,
    }
    assert len(email_service.sent) == 1


def test_reminder_job_requires_cron_secret(client):
    assert client.post("/jobs/send-deadline-reminders").status_code == 401
    assert client.post("/jobs/send-deadline-reminders", headers={"X-Cron-Secret": "nope"}).status_code == 401


def test_renewal_job_endpoint(client, session):
    user = make_user(session)
    parent = make_deadline(session, user, TODAY - timedelta(days=2), recurrence="annual", auto_renew=True)

    response = client.post("/jobs/renew-recurring-deadlines", headers=CRON_HEADERS)
    assert response.status_code == 200
    body = response.json()
    assert body["renewed"] == 1
    assert len(body["createdIds"]) == 1

    again = client.post("/jobs/renew-recurring-deadlines", headers=CRON_HEADERS)
    assert again.json()["renewed"] == 0
    child = session.get(Deadline, body["createdIds"][0])
    assert child.parent_deadline_id == parent.id
