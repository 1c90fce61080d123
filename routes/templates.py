# routes/templates.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, select
from typing import List, Optional
from datetime import date

from core.database import get_session
from core.payment_utils import get_plan_limits, get_user_tier
from core.security import get_current_user
from models.models import DeadlineCategory, DeadlineTemplate, RecurrencePattern, User
from routes.deadlines import get_repository, get_today
from schemas.deadline_schema import DeadlineRead
from schemas.template_schema import DeadlineFromTemplate, TemplateRead
from services.deadline_service import DeadlineRepository

router = APIRouter(prefix="/templates", tags=["Templates"])


@router.get("/", response_model=List[TemplateRead])
def list_templates(
    category: Optional[DeadlineCategory] = Query(default=None),
    industry: Optional[str] = Query(default=None, description="e.g. construction"),
    session: Session = Depends(get_session),
):
    statement = select(DeadlineTemplate).where(DeadlineTemplate.is_active == True)  # noqa: E712
    if category:
        statement = statement.where(DeadlineTemplate.category == category.value)
    templates = session.exec(statement.order_by(DeadlineTemplate.category, DeadlineTemplate.name)).all()

    if industry:
        industry = industry.lower()
        templates = [t for t in templates if industry in t.industry_list]
    return [TemplateRead.from_template(t) for t in templates]


@router.get("/{template_id}", response_model=TemplateRead)
def get_template(template_id: int, session: Session = Depends(get_session)):
    template = session.get(DeadlineTemplate, template_id)
    if not template or not template.is_active:
        raise HTTPException(status_code=404, detail="Template not found")
    return TemplateRead.from_template(template)


@router.post("/{template_id}/deadlines", response_model=DeadlineRead, status_code=status.HTTP_201_CREATED)
def create_deadline_from_template(
    template_id: int,
    payload: DeadlineFromTemplate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    repository: DeadlineRepository = Depends(get_repository),
    today: date = Depends(get_today),
):
    """
    Create a deadline pre-filled from a template. Plans without recurring
    deadlines get a one-off deadline instead of the template's recurrence.
    """
    template = session.get(DeadlineTemplate, template_id)
    if not template or not template.is_active:
        raise HTTPException(status_code=404, detail="Template not found")

    recurrence = template.typical_recurrence
    if not get_plan_limits(get_user_tier(session, current_user)).recurring:
        recurrence = RecurrencePattern.NONE.value

    fields = {
        "title": payload.title or template.name,
        "description": template.description,
        "category": template.category,
        "subcategory": template.subcategory,
        "due_date": payload.due_date,
        "consequence_level": payload.consequence_level or template.default_consequence_level,
        "recurrence": recurrence,
        "renewal_instructions": template.renewal_instructions_template,
        "reference_number": payload.reference_number,
        "issuing_authority": payload.issuing_authority or template.issuing_authority_template,
    }
    deadline = repository.create(current_user, fields, share=payload.share_with_organization)
    return DeadlineRead.from_deadline(deadline, today)
