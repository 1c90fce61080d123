from datetime import date, datetime, timedelta

import pytest

from core.deadline_utils import (
    STATUS_ORDER,
    add_months,
    classify,
    format_days_until_due,
    is_at_reminder_window,
    next_due_date,
    overall_urgency,
    reminder_urgency_text,
    should_remind,
    sort_by_urgency,
    urgency_message,
)
from models.models import Deadline, DeadlineStatus, RecurrencePattern

TODAY = date(2026, 3, 2)
NOW = datetime(2026, 3, 2, 9, 0)


@pytest.mark.parametrize(
    "days, expected",
    [
        (-30, DeadlineStatus.OVERDUE),
        (-1, DeadlineStatus.OVERDUE),
        (0, DeadlineStatus.CRITICAL),
        (3, DeadlineStatus.CRITICAL),
        (4, DeadlineStatus.URGENT),
        (7, DeadlineStatus.URGENT),
        (8, DeadlineStatus.WARNING),
        (14, DeadlineStatus.WARNING),
        (15, DeadlineStatus.UPCOMING),
        (30, DeadlineStatus.UPCOMING),
        (31, DeadlineStatus.SAFE),
        (400, DeadlineStatus.SAFE),
    ],
)
def test_classify_boundaries(days, expected):
    assert classify(TODAY + timedelta(days=days), TODAY) == expected


def test_classify_is_monotonic_and_skips_no_tier():
    tiers = [classify(TODAY + timedelta(days=d), TODAY) for d in range(-5, 60)]
    orders = [STATUS_ORDER[t] for t in tiers]
    assert orders == sorted(orders)
    assert set(tiers) == set(DeadlineStatus)


def test_format_days_until_due():
    assert format_days_until_due(TODAY, TODAY) == "Due today"
    assert format_days_until_due(TODAY + timedelta(days=1), TODAY) == "Due tomorrow"
    assert format_days_until_due(TODAY + timedelta(days=9), TODAY) == "9 days"
    assert format_days_until_due(TODAY - timedelta(days=1), TODAY) == "1 day overdue"
    assert format_days_until_due(TODAY - timedelta(days=4), TODAY) == "4 days overdue"


# ------------------------
# Recurrence
# ------------------------
@pytest.mark.parametrize(
    "pattern, expected",
    [
        (RecurrencePattern.MONTHLY, date(2026, 4, 15)),
        (RecurrencePattern.QUARTERLY, date(2026, 6, 15)),
        (RecurrencePattern.SEMI_ANNUAL, date(2026, 9, 15)),
        (RecurrencePattern.ANNUAL, date(2027, 3, 15)),
        (RecurrencePattern.BIENNIAL, date(2028, 3, 15)),
        (RecurrencePattern.NONE, date(2026, 3, 15)),
    ],
)
def test_next_due_date_patterns(pattern, expected):
    assert next_due_date(date(2026, 3, 15), pattern) == expected


def test_annual_from_leap_day_lands_on_feb_28():
    assert next_due_date(date(2024, 2, 29), RecurrencePattern.ANNUAL) == date(2025, 2, 28)


def test_biennial_from_leap_day_lands_on_feb_28():
    assert next_due_date(date(2024, 2, 29), RecurrencePattern.BIENNIAL) == date(2026, 2, 28)


def test_annual_adds_exactly_one_calendar_year():
    day = date(2025, 1, 1)
    while day < date(2025, 12, 31):
        renewed = next_due_date(day, RecurrencePattern.ANNUAL)
        assert (renewed.year, renewed.month, renewed.day) == (day.year + 1, day.month, day.day)
        day += timedelta(days=1)


def test_month_end_is_clamped():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months(date(2028, 1, 31), 1) == date(2028, 2, 29)
    assert add_months(date(2026, 8, 31), 3) == date(2026, 11, 30)
    assert add_months(date(2026, 11, 30), 3) == date(2027, 2, 28)


def test_custom_interval():
    assert next_due_date(date(2026, 3, 1), RecurrencePattern.CUSTOM, 45) == date(2026, 4, 15)
    assert next_due_date(date(2026, 3, 1), RecurrencePattern.CUSTOM) == date(2027, 3, 1)


def test_next_due_date_accepts_stored_string():
    assert next_due_date(date(2026, 3, 15), "quarterly") == date(2026, 6, 15)


# ------------------------
# Reminder windows
# ------------------------
@pytest.mark.parametrize("days", [30, 14, 7, 3, 1])
def test_windows_fire_without_previous_reminder(days):
    assert is_at_reminder_window(days)
    assert should_remind(days, None, NOW)


@pytest.mark.parametrize("days", [-1, 0, 2, 4, 5, 6, 8, 13, 15, 29, 31, 60, 90])
def test_off_window_days_never_fire(days):
    assert not should_remind(days, None, NOW)
    assert not should_remind(days, NOW - timedelta(days=10), NOW)


def test_reminder_respects_24_hour_spacing():
    assert not should_remind(7, NOW - timedelta(hours=23), NOW)
    assert should_remind(7, NOW - timedelta(hours=24), NOW)
    assert should_remind(7, NOW - timedelta(hours=25), NOW)


def test_reminder_urgency_text():
    assert reminder_urgency_text(1) == "TODAY"
    assert reminder_urgency_text(3) == "URGENT"
    assert reminder_urgency_text(7) == "Upcoming"


# ------------------------
# Lists
# ------------------------
def _deadline(title, offset):
    return Deadline(title=title, due_date=TODAY + timedelta(days=offset), user_id=1)


def test_sort_by_urgency_orders_by_tier_then_date():
    deadlines = [_deadline("safe", 90), _deadline("urgent", 6), _deadline("overdue", -2),
                 _deadline("critical-late", 3), _deadline("critical-early", 1)]
    titles = [d.title for d in sort_by_urgency(deadlines, TODAY)]
    assert titles == ["overdue", "critical-early", "critical-late", "urgent", "safe"]


def test_overall_urgency_and_message():
    assert overall_urgency([], TODAY) == DeadlineStatus.SAFE
    deadlines = [_deadline("a", 20), _deadline("b", 5)]
    assert overall_urgency(deadlines, TODAY) == DeadlineStatus.URGENT
    assert urgency_message(DeadlineStatus.URGENT, 1) == "1 urgent deadline due within 7 days"
    assert urgency_message(DeadlineStatus.OVERDUE, 2) == "2 overdue deadlines need immediate attention"
