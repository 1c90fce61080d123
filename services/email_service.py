from datetime import date
from html import escape
from typing import Optional
import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from core.config import settings
from core.deadline_utils import CONSEQUENCE_MARKERS, category_label, reminder_urgency_text
from models.models import ConsequenceLevel, Deadline, UserRole

logger = logging.getLogger(__name__)


class EmailService:
    """
    Transactional email for DeadlineGuard, sent via SendGrid.
    Every send returns True only when SendGrid accepted the message.
    """

    def __init__(self, api_key: Optional[str], sender_email: Optional[str]):
        self.sendgrid_api_key = api_key
        self.sender_email = sender_email

        self.enabled = bool(self.sendgrid_api_key and self.sender_email)
        if not self.enabled:
            logger.warning("📧 Email service not configured. Missing SENDGRID_API_KEY or MAIL_FROM.")

    # ============================================================
    # ✅ Low-level send
    # ============================================================
    def send(self, to_email: str, subject: str, html_content: str) -> bool:
        if not self.enabled:
            # Development fallback (no SendGrid setup)
            logger.info("📨 [Mock Email] To: %s | Subject: %s", to_email, subject)
            return True

        try:
            message = Mail(
                from_email=self.sender_email,
                to_emails=to_email,
                subject=subject,
                html_content=html_content,
            )
            response = SendGridAPIClient(self.sendgrid_api_key).send(message)
        except Exception as e:
            logger.exception("❌ Failed to send email to %s: %s", to_email, e)
            return False

        if response.status_code >= 300:
            logger.error("❌ SendGrid rejected email to %s. Status: %s", to_email, response.status_code)
            return False

        logger.info("✅ Email sent to %s. Status: %s", to_email, response.status_code)
        return True

    # ============================================================
    # ✅ Deadline reminder
    # ============================================================
    def send_deadline_reminder(self, to_email: str, to_name: str, deadline: Deadline, days_until: int) -> bool:
        return self.send(
            to_email,
            build_reminder_subject(deadline, days_until),
            build_reminder_html(to_name, deadline, days_until),
        )

    # ============================================================
    # ✅ Team invitation
    # ============================================================
    def send_invitation_email(
        self,
        to_email: str,
        invitation_link: str,
        role: str,
        org_name: str,
        invited_by: str,
        valid_days: int = 7,
    ) -> bool:
        role_text = "team admin" if role == UserRole.ORG_ADMIN.value else "team member"
        subject = f"{invited_by} invited you to join {org_name} on DeadlineGuard"
        html_content = f"""
        <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <h2>🛡️ DeadlineGuard</h2>
            <p><strong>{escape(invited_by)}</strong> has invited you to join
            <strong>{escape(org_name)}</strong> on DeadlineGuard as a {role_text}.</p>

            <p>DeadlineGuard helps teams track critical business deadlines: licenses,
            insurance renewals, certifications, and more.</p>

            <p style="text-align: center; margin: 20px 0;">
                <a href="{invitation_link}" style="
                    background-color: #667eea;
                    color: white;
                    padding: 14px 28px;
                    text-decoration: none;
                    border-radius: 8px;
                    font-weight: bold;
                    display: inline-block;
                ">Accept Invitation</a>
            </p>

            <p style="word-break: break-all; color: #555;">{invitation_link}</p>
            <p><small>This invitation expires in {valid_days} days. If you didn't expect it,
            you can safely ignore this email.</small></p>
        </div>
        """
        return self.send(to_email, subject, html_content)


# ============================================================
# Reminder rendering
# ============================================================
def build_reminder_subject(deadline: Deadline, days_until: int) -> str:
    try:
        marker = CONSEQUENCE_MARKERS[ConsequenceLevel(deadline.consequence_level)]
    except ValueError:
        marker = "📋"
    plural = "" if days_until == 1 else "s"
    return f"{marker} {reminder_urgency_text(days_until)}: {deadline.title} due in {days_until} day{plural}"


def _format_due_date(value: date) -> str:
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"


def build_reminder_html(to_name: str, deadline: Deadline, days_until: int) -> str:
    plural = "" if days_until == 1 else "s"
    days_color = "#dc2626" if days_until <= 3 else "#667eea"
    description = (
        f'<p style="color: #6b7280;">{escape(deadline.description)}</p>' if deadline.description else ""
    )
    return f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px;">
        <h2>⏰ Deadline Reminder</h2>
        <p>Hi {escape(to_name)}, don't miss this important deadline!</p>

        <div style="text-align: center;">
            <div style="font-size: 48px; font-weight: bold; color: {days_color};">{days_until}</div>
            <div style="color: #6b7280;">day{plural} remaining</div>
        </div>

        <div style="background: white; border-radius: 8px; padding: 20px; margin: 20px 0;">
            <h3 style="margin: 0;">{escape(deadline.title)}
                <span style="font-size: 12px;">{deadline.consequence_level.upper()}</span></h3>
            {description}
            <p>📅 <strong>Due:</strong> {_format_due_date(deadline.due_date)}<br>
               📁 <strong>Category:</strong> {category_label(deadline.category)}</p>
        </div>

        <p style="color: #6b7280; font-size: 12px;">This is an automated reminder from DeadlineGuard.</p>
    </div>
    """


# ============================================================
# ✅ Dependency
# ============================================================
def get_email_service() -> EmailService:
    return EmailService(settings.SENDGRID_API_KEY, settings.MAIL_FROM)
