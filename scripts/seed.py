# scripts/seed.py

import os
import sys
import argparse
from datetime import date, timedelta

from dotenv import load_dotenv
from sqlmodel import Session, select

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# ✅ Load environment variables before settings are read
load_dotenv()

from core.database import create_db_and_tables, engine
from core.security import hash_password
from core.template_catalog import seed_deadline_templates
from models.models import Deadline, Organization, User, UserRole

# (title, category, consequence level, days from today, recurrence)
DEMO_DEADLINES = [
    ("General Contractor License", "license", "critical", 2, "annual"),
    ("General Liability Insurance", "insurance", "critical", 6, "annual"),
    ("Quarterly Payroll Tax", "other", "critical", 12, "quarterly"),
    ("Performance Bond - Main St Project", "contract", "high", 25, "none"),
    ("OSHA 30-Hour Refresh", "personal", "medium", 90, "none"),
    ("Business License", "license", "high", -3, "annual"),
]


def _get_or_create_user(session: Session, email: str, name: str, password: str, role: str, org_id) -> User:
    user = session.exec(select(User).where(User.email == email)).first()
    if user:
        return user
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        organization_id=org_id,
        is_active=True,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    print(f"✅ Added user {email}")
    return user


def seed_dev_data():
    """Seed development database with a demo firm, its users and deadlines."""
    print("🌱 Seeding development data...")
    create_db_and_tables()

    with Session(engine) as session:
        seed_deadline_templates(session)

        # -----------------------------
        # 🏢 Demo Organization
        # -----------------------------
        org = session.exec(
            select(Organization).where(Organization.name == "Demo Construction Co")
        ).first()

        if not org:
            org = Organization(name="Demo Construction Co", industry="construction")
            session.add(org)
            session.commit()
            session.refresh(org)
            print("✅ Created Demo Construction Co")

        admin_user = _get_or_create_user(
            session, "admin@demo.com", "Admin User", "admin1234", UserRole.ORG_ADMIN.value, org.id
        )
        _get_or_create_user(
            session, "member@demo.com", "Member User", "member1234", UserRole.ORG_MEMBER.value, org.id
        )

        # -----------------------------
        # 📅 Shared deadlines
        # -----------------------------
        today = date.today()
        for title, category, level, offset, recurrence in DEMO_DEADLINES:
            exists = session.exec(
                select(Deadline).where(Deadline.title == title, Deadline.organization_id == org.id)
            ).first()
            if exists:
                continue
            session.add(Deadline(
                title=title,
                category=category,
                consequence_level=level,
                due_date=today + timedelta(days=offset),
                recurrence=recurrence,
                user_id=admin_user.id,
                organization_id=org.id,
            ))

        session.commit()
        print("✅ Added sample deadlines")
        print("🌱 Development data seeding complete.")


def seed_staging_data():
    """Seed staging database with templates and one admin."""
    print("🌱 Seeding staging data...")
    create_db_and_tables()

    with Session(engine) as session:
        seed_deadline_templates(session)

        org = session.exec(
            select(Organization).where(Organization.name == "Staging Org")
        ).first()

        if not org:
            org = Organization(name="Staging Org")
            session.add(org)
            session.commit()
            session.refresh(org)
            print("✅ Created Staging Org")

        _get_or_create_user(
            session, "staging-admin@deadlineguard.app", "Staging Admin", "staging1234",
            UserRole.ORG_ADMIN.value, org.id,
        )
        print("🌱 Staging data seeding complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the DeadlineGuard database.")
    parser.add_argument(
        "--env",
        choices=["dev", "staging"],
        default="dev",
        help="Select environment to seed (dev or staging)",
    )
    args = parser.parse_args()

    if args.env == "dev":
        seed_dev_data()
    elif args.env == "staging":
        seed_staging_data()
