# core/template_catalog.py
"""Built-in deadline templates for architecture, engineering and construction firms."""
import logging

from sqlmodel import Session, select

from models.models import DeadlineTemplate

logger = logging.getLogger(__name__)

ALL_AEC = "construction,engineering,architecture"

# (name, description, category, subcategory, consequence, recurrence, lead days,
#  industries, issuing authority, renewal instructions)
DEFAULT_TEMPLATES = [
    # Licenses
    ("General Contractor License", "State contractor license for general construction work",
     "license", "contractor_license", "critical", "annual", 60, "construction",
     "State Contractor Licensing Board",
     "Submit renewal application with proof of insurance and bond. Complete any required continuing education."),
    ("Specialty Contractor License", "Trade-specific contractor license (electrical, plumbing, HVAC, etc.)",
     "license", "specialty_license", "critical", "annual", 60, "construction",
     "State Licensing Board", "Verify journeyman hours, submit renewal fee, complete CE requirements."),
    ("Professional Engineer (PE) License", "State PE license for engineering practice",
     "license", "pe_license", "critical", "biennial", 90, "engineering",
     "State Board of Professional Engineers", "Complete PDH requirements, submit renewal application and fee."),
    ("Architect License", "State architecture license",
     "license", "architect_license", "critical", "biennial", 90, "architecture",
     "State Board of Architecture", "Complete continuing education, submit renewal application."),
    ("Business License", "General business operating license",
     "license", "business_license", "high", "annual", 30, ALL_AEC,
     "City/County Business License Office", "Pay renewal fee, update business information if changed."),

    # Insurance
    ("General Liability Insurance", "Commercial general liability coverage",
     "insurance", "general_liability", "critical", "annual", 45, ALL_AEC,
     None, "Review coverage limits, get renewal quote, update certificate holders."),
    ("Professional Liability (E&O)", "Errors and omissions coverage for professional services",
     "insurance", "professional_liability", "critical", "annual", 45, "engineering,architecture",
     None, "Review claims history, update project types, renew with adequate limits."),
    ("Workers Compensation", "Workers comp coverage for employees",
     "insurance", "workers_comp", "critical", "annual", 30, "construction",
     None, "Complete payroll audit, submit renewal application."),
    ("Commercial Auto Insurance", "Vehicle fleet coverage",
     "insurance", "commercial_auto", "high", "annual", 30, "construction",
     None, "Update vehicle list, review driver records, get renewal quote."),
    ("Builders Risk Insurance", "Coverage for projects under construction",
     "insurance", "builders_risk", "high", "none", 30, "construction",
     None, "Project-specific policy. Verify coverage period matches project timeline."),
    ("Umbrella/Excess Liability", "Additional liability coverage above primary policies",
     "insurance", "umbrella", "high", "annual", 45, ALL_AEC,
     None, "Ensure underlying policies are renewed first. Match coverage dates."),

    # Bonds
    ("License Bond", "Bond required to maintain contractor license",
     "contract", "license_bond", "critical", "annual", 30, "construction",
     "State Licensing Board", "Renew bond, submit to licensing board with license renewal."),
    ("Bid Bond", "Bond submitted with project bid",
     "contract", "bid_bond", "high", "none", 14, "construction",
     None, "Project-specific. Coordinate with surety for each bid."),
    ("Performance Bond", "Bond guaranteeing project completion",
     "contract", "performance_bond", "critical", "none", 14, "construction",
     None, "Project-specific. Coordinate with surety at contract award."),
    ("Payment Bond", "Bond guaranteeing payment to subs and suppliers",
     "contract", "payment_bond", "critical", "none", 14, "construction",
     None, "Usually paired with performance bond. Required on public projects."),

    # Certifications
    ("OSHA 10-Hour", "OSHA 10-hour safety certification",
     "personal", "safety_cert", "medium", "none", 30, "construction",
     "OSHA", "Does not expire but clients may require refresh every 3-5 years."),
    ("OSHA 30-Hour", "OSHA 30-hour safety certification for supervisors",
     "personal", "safety_cert", "medium", "none", 30, "construction",
     "OSHA", "Does not expire but clients may require refresh every 3-5 years."),
    ("First Aid/CPR", "First aid and CPR certification",
     "personal", "safety_cert", "medium", "biennial", 30, "construction",
     "American Red Cross / AHA", "Complete recertification class."),
    ("LEED Credential", "LEED AP or Green Associate credential",
     "personal", "professional_cert", "low", "biennial", 60, "architecture,engineering,construction",
     "GBCI", "Complete continuing education hours, pay maintenance fee."),
    ("Equipment Operator Certification", "Crane, forklift, or heavy equipment certification",
     "personal", "equipment_cert", "high", "annual", 30, "construction",
     "NCCCO / Equipment-specific", "Complete recertification training and practical exam."),

    # Permits & compliance
    ("Building Permit", "Active building permit for construction project",
     "other", "building_permit", "critical", "none", 14, "construction",
     "Local Building Department", "Project-specific. Track expiration and inspection requirements."),
    ("Stormwater Permit (SWPPP)", "Stormwater pollution prevention permit",
     "other", "environmental_permit", "high", "annual", 30, "construction",
     "State Environmental Agency / EPA", "Submit annual report, update SWPPP as needed."),
    ("Encroachment Permit", "Permit for work in public right-of-way",
     "other", "encroachment_permit", "high", "none", 14, "construction",
     "City/County Public Works", "Project-specific. Coordinate with traffic control."),

    # Tax & reporting
    ("Quarterly Payroll Tax", "Federal and state payroll tax deposits",
     "other", "tax_deadline", "critical", "quarterly", 7, ALL_AEC,
     "IRS / State Tax Agency", "File Form 941, deposit withheld taxes."),
    ("Certified Payroll Report", "Weekly certified payroll for prevailing wage projects",
     "other", "compliance_report", "high", "none", 7, "construction",
     "Project Owner / DOL", "Submit weekly for duration of prevailing wage project."),
    ("Annual Report / Franchise Tax", "State annual report or franchise tax filing",
     "other", "tax_deadline", "high", "annual", 30, ALL_AEC,
     "Secretary of State", "File annual report, pay franchise tax if applicable."),
]


def seed_deadline_templates(session: Session) -> int:
    """Insert any missing built-in templates. Returns how many were added."""
    existing = set(session.exec(select(DeadlineTemplate.name)).all())
    added = 0
    for (name, description, category, subcategory, consequence, recurrence,
         lead_days, industries, authority, instructions) in DEFAULT_TEMPLATES:
        if name in existing:
            continue
        session.add(DeadlineTemplate(
            name=name,
            description=description,
            category=category,
            subcategory=subcategory,
            default_consequence_level=consequence,
            typical_recurrence=recurrence,
            typical_lead_time_days=lead_days,
            industries=industries,
            issuing_authority_template=authority,
            renewal_instructions_template=instructions,
        ))
        added += 1

    if added:
        session.commit()
        logger.info("🌱 Seeded %s deadline templates", added)
    return added
