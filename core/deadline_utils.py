# core/deadline_utils.py
"""
Pure deadline arithmetic: urgency tiers, recurrence scheduling and reminder windows.

All day counts are whole calendar-day differences between timezone-naive dates.
Nothing here touches the database or the clock; callers pass ``today``/``now``.
"""
import calendar
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from models.models import (
    ConsequenceLevel,
    Deadline,
    DeadlineCategory,
    DeadlineStatus,
    RecurrencePattern,
)


# ============================================================
# URGENCY
# ============================================================
# Inclusive upper bound (days until due) of each tier, checked in order
URGENCY_THRESHOLDS = (
    (DeadlineStatus.CRITICAL, 3),
    (DeadlineStatus.URGENT, 7),
    (DeadlineStatus.WARNING, 14),
    (DeadlineStatus.UPCOMING, 30),
)

STATUS_ORDER: Dict[DeadlineStatus, int] = {
    DeadlineStatus.OVERDUE: 0,
    DeadlineStatus.CRITICAL: 1,
    DeadlineStatus.URGENT: 2,
    DeadlineStatus.WARNING: 3,
    DeadlineStatus.UPCOMING: 4,
    DeadlineStatus.SAFE: 5,
}

STATUS_LABELS: Dict[DeadlineStatus, str] = {
    DeadlineStatus.SAFE: "On Track",
    DeadlineStatus.UPCOMING: "Upcoming",
    DeadlineStatus.WARNING: "Due Soon",
    DeadlineStatus.URGENT: "Urgent",
    DeadlineStatus.CRITICAL: "Critical",
    DeadlineStatus.OVERDUE: "Overdue",
}


def days_until_due(due_date: date, today: date) -> int:
    """Whole calendar days from ``today`` to ``due_date`` (negative once passed)."""
    return (due_date - today).days


def status_for_days(days: int) -> DeadlineStatus:
    if days < 0:
        return DeadlineStatus.OVERDUE
    for status, upper_bound in URGENCY_THRESHOLDS:
        if days <= upper_bound:
            return status
    return DeadlineStatus.SAFE


def classify(due_date: date, today: date) -> DeadlineStatus:
    """
    Map a due date to its urgency tier.

    Due today counts as ``critical``; ``overdue`` starts the day after.
    """
    return status_for_days(days_until_due(due_date, today))


def format_days_until_due(due_date: date, today: date) -> str:
    days = days_until_due(due_date, today)
    if days < 0:
        overdue = abs(days)
        return f"{overdue} day{'s' if overdue != 1 else ''} overdue"
    if days == 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    return f"{days} days"


# ============================================================
# RECURRENCE
# ============================================================
MONTHS_PER_PATTERN: Dict[RecurrencePattern, int] = {
    RecurrencePattern.MONTHLY: 1,
    RecurrencePattern.QUARTERLY: 3,
    RecurrencePattern.SEMI_ANNUAL: 6,
    RecurrencePattern.ANNUAL: 12,
    RecurrencePattern.BIENNIAL: 24,
}

DEFAULT_CUSTOM_INTERVAL_DAYS = 365

RECURRENCE_LABELS: Dict[RecurrencePattern, str] = {
    RecurrencePattern.NONE: "One-time",
    RecurrencePattern.MONTHLY: "Monthly",
    RecurrencePattern.QUARTERLY: "Quarterly",
    RecurrencePattern.SEMI_ANNUAL: "Semi-Annual",
    RecurrencePattern.ANNUAL: "Annual",
    RecurrencePattern.BIENNIAL: "Every 2 Years",
    RecurrencePattern.CUSTOM: "Custom",
}


def add_months(value: date, months: int) -> date:
    """
    Calendar-month addition. A day that does not exist in the target month is
    clamped to that month's last day (Jan 31 + 1 month -> Feb 28/29,
    Feb 29 + 12 months -> Feb 28).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))


def next_due_date(
    current_due: date,
    pattern: RecurrencePattern,
    custom_interval_days: Optional[int] = None,
) -> date:
    """
    Next occurrence of a repeating deadline.

    ``none`` returns ``current_due`` unchanged, meaning "do not reschedule".
    ``custom`` adds ``custom_interval_days`` (365 when unset).
    """
    pattern = RecurrencePattern(pattern)
    if pattern == RecurrencePattern.CUSTOM:
        return current_due + timedelta(days=custom_interval_days or DEFAULT_CUSTOM_INTERVAL_DAYS)
    months = MONTHS_PER_PATTERN.get(pattern)
    if months is None:
        return current_due
    return add_months(current_due, months)


# ============================================================
# REMINDER WINDOWS
# ============================================================
# Days-before-due at which a reminder may fire. Applies to every severity level.
REMINDER_WINDOWS = (30, 14, 7, 3, 1)
REMINDER_MIN_INTERVAL = timedelta(hours=24)


def is_at_reminder_window(days: int) -> bool:
    return any(days <= window and days > window - 1 for window in REMINDER_WINDOWS)


def should_remind(days: int, last_reminder_sent: Optional[datetime], now: datetime) -> bool:
    """
    True when ``days`` sits exactly on a reminder window and no reminder went out
    in the last 24 hours. Only elapsed time is checked, not which window fired last.
    """
    if not is_at_reminder_window(days):
        return False
    if last_reminder_sent is None:
        return True
    return now - last_reminder_sent >= REMINDER_MIN_INTERVAL


def reminder_urgency_text(days: int) -> str:
    if days <= 1:
        return "TODAY"
    if days <= 3:
        return "URGENT"
    return "Upcoming"


# ============================================================
# LISTS OF DEADLINES
# ============================================================
CATEGORY_LABELS: Dict[DeadlineCategory, str] = {
    DeadlineCategory.LICENSE: "License",
    DeadlineCategory.INSURANCE: "Insurance",
    DeadlineCategory.CONTRACT: "Contract",
    DeadlineCategory.PERSONAL: "Personal",
    DeadlineCategory.OTHER: "Other",
}

CONSEQUENCE_MARKERS: Dict[ConsequenceLevel, str] = {
    ConsequenceLevel.CRITICAL: "🚨",
    ConsequenceLevel.HIGH: "⚠️",
    ConsequenceLevel.MEDIUM: "📌",
    ConsequenceLevel.LOW: "📝",
}


def category_label(category: str) -> str:
    try:
        return CATEGORY_LABELS[DeadlineCategory(category)]
    except ValueError:
        return category


def sort_by_urgency(deadlines: Iterable[Deadline], today: date) -> List[Deadline]:
    """Most urgent tier first; ties broken by earlier due date."""
    return sorted(
        deadlines,
        key=lambda d: (STATUS_ORDER[classify(d.due_date, today)], d.due_date),
    )


def group_by_status(deadlines: Iterable[Deadline], today: date) -> Dict[DeadlineStatus, List[Deadline]]:
    groups: Dict[DeadlineStatus, List[Deadline]] = {status: [] for status in DeadlineStatus}
    for deadline in deadlines:
        groups[classify(deadline.due_date, today)].append(deadline)
    return groups


def count_by_category(deadlines: Iterable[Deadline]) -> Dict[str, int]:
    counts = {category.value: 0 for category in DeadlineCategory}
    for deadline in deadlines:
        counts[deadline.category] = counts.get(deadline.category, 0) + 1
    return counts


def overall_urgency(deadlines: Sequence[Deadline], today: date) -> DeadlineStatus:
    """Worst tier present, ``safe`` for an empty list."""
    if not deadlines:
        return DeadlineStatus.SAFE
    return min(
        (classify(d.due_date, today) for d in deadlines),
        key=lambda status: STATUS_ORDER[status],
    )


def urgency_message(status: DeadlineStatus, count: int) -> str:
    plural = "s" if count != 1 else ""
    messages = {
        DeadlineStatus.OVERDUE: f"{count} overdue deadline{plural} need immediate attention",
        DeadlineStatus.CRITICAL: f"{count} critical deadline{plural} due within 3 days",
        DeadlineStatus.URGENT: f"{count} urgent deadline{plural} due within 7 days",
        DeadlineStatus.WARNING: f"{count} deadline{plural} due within 2 weeks",
        DeadlineStatus.UPCOMING: f"{count} deadline{plural} approaching",
        DeadlineStatus.SAFE: "All deadlines are on track",
    }
    return messages[status]
