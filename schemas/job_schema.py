# job_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List


class ReminderRunResponse(BaseModel):
    success: bool = True
    message: str
    reminders_sent: int = Field(..., alias="remindersSent")
    reminders_skipped: int = Field(..., alias="remindersSkipped")
    reminders_failed: int = Field(default=0, alias="remindersFailed")
    total_deadlines: int = Field(..., alias="totalDeadlines")

    model_config = ConfigDict(populate_by_name=True)


class RenewalRunResponse(BaseModel):
    success: bool = True
    message: str
    renewed: int
    created_ids: List[int] = Field(default_factory=list, alias="createdIds")

    model_config = ConfigDict(populate_by_name=True)
