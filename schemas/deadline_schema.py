# deadline_schema.py
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, Dict
from datetime import date, datetime

from core.deadline_utils import (
    RECURRENCE_LABELS,
    STATUS_LABELS,
    classify,
    days_until_due,
    format_days_until_due,
)
from models.models import (
    ConsequenceLevel,
    Deadline,
    DeadlineCategory,
    DeadlineStatus,
    RecurrencePattern,
)


def _strip_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Title cannot be blank")
    return value


# ============================================================
# ✅ Create Deadline (input)
# ============================================================
class DeadlineCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: DeadlineCategory = DeadlineCategory.OTHER
    subcategory: Optional[str] = Field(default=None, max_length=100)
    due_date: date
    consequence_level: ConsequenceLevel = ConsequenceLevel.MEDIUM

    recurrence: RecurrencePattern = RecurrencePattern.NONE
    recurrence_interval_days: Optional[int] = Field(default=None, ge=1, le=3650)
    auto_renew: bool = False

    renewal_instructions: Optional[str] = Field(default=None, max_length=2000)
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    reference_number: Optional[str] = Field(default=None, max_length=100)
    issuing_authority: Optional[str] = Field(default=None, max_length=200)

    # organization_id and user_id are set server-side
    share_with_organization: bool = False

    clean_title = field_validator("title")(_strip_title)

    @model_validator(mode="after")
    def check_auto_renew(self):
        if self.auto_renew and self.recurrence == RecurrencePattern.NONE:
            raise ValueError("auto_renew requires a recurrence pattern")
        return self


# ============================================================
# ✅ Update Deadline (partial)
# ============================================================
class DeadlineUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[DeadlineCategory] = None
    subcategory: Optional[str] = Field(default=None, max_length=100)
    due_date: Optional[date] = None
    consequence_level: Optional[ConsequenceLevel] = None

    recurrence: Optional[RecurrencePattern] = None
    recurrence_interval_days: Optional[int] = Field(default=None, ge=1, le=3650)
    auto_renew: Optional[bool] = None

    renewal_instructions: Optional[str] = Field(default=None, max_length=2000)
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    reference_number: Optional[str] = Field(default=None, max_length=100)
    issuing_authority: Optional[str] = Field(default=None, max_length=200)

    share_with_organization: Optional[bool] = None

    clean_title = field_validator("title")(_strip_title)


# ============================================================
# ✅ Read Deadline (output, with derived urgency)
# ============================================================
class DeadlineRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    due_date: date
    consequence_level: str

    user_id: int
    organization_id: Optional[int] = None
    last_reminder_sent: Optional[datetime] = None

    recurrence: str
    recurrence_label: str
    recurrence_interval_days: Optional[int] = None
    parent_deadline_id: Optional[int] = None
    auto_renew: bool = False

    renewal_instructions: Optional[str] = None
    estimated_cost: Optional[float] = None
    reference_number: Optional[str] = None
    issuing_authority: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    # Derived on every read
    status: DeadlineStatus
    status_label: str
    days_until_due: int
    due_label: str

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_deadline(cls, deadline: Deadline, today: date) -> "DeadlineRead":
        status = classify(deadline.due_date, today)
        return cls(
            **deadline.model_dump(),
            recurrence_label=RECURRENCE_LABELS.get(RecurrencePattern(deadline.recurrence), deadline.recurrence),
            status=status,
            status_label=STATUS_LABELS[status],
            days_until_due=days_until_due(deadline.due_date, today),
            due_label=format_days_until_due(deadline.due_date, today),
        )


class DeadlineSummary(BaseModel):
    total: int
    counts: Dict[str, int]
    by_category: Dict[str, int]
    overall_status: DeadlineStatus
    message: str
