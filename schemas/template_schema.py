# template_schema.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date

from models.models import ConsequenceLevel, DeadlineTemplate


class TemplateRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    default_consequence_level: str
    typical_recurrence: str
    typical_lead_time_days: int
    industries: List[str] = []
    issuing_authority_template: Optional[str] = None
    renewal_instructions_template: Optional[str] = None

    @classmethod
    def from_template(cls, template: DeadlineTemplate) -> "TemplateRead":
        data = template.model_dump(exclude={"industries", "is_active", "created_at"})
        return cls(**data, industries=template.industry_list)


class DeadlineFromTemplate(BaseModel):
    due_date: date
    title: Optional[str] = Field(default=None, min_length=1, max_length=200, description="Defaults to the template name")
    consequence_level: Optional[ConsequenceLevel] = None
    reference_number: Optional[str] = Field(default=None, max_length=100)
    issuing_authority: Optional[str] = Field(default=None, max_length=200)
    share_with_organization: bool = False
