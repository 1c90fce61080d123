import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ.pop("SENDGRID_API_KEY", None)

from datetime import date, datetime
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from core.database import get_session
from core.security import create_token_for_user, hash_password
from main import app
from models.models import Deadline, Organization, Subscription, User, UserRole
from routes.deadlines import get_today
from routes.jobs import get_now
from routes.payment import get_price_ids
from services.email_service import EmailService, get_email_service
from services.payment_service import PaymentGateway, get_payment_gateway

TODAY = date(2026, 3, 2)
NOW = datetime(2026, 3, 2, 9, 0, 0)
WEBHOOK_SECRET = "whsec_test_secret"
CRON_HEADERS = {"X-Cron-Secret": "test-cron-secret"}
PRICE_IDS = {
    "pro_monthly": "price_pro_monthly",
    "pro_yearly": "price_pro_yearly",
    "team_monthly": "price_team_monthly",
}


class RecordingEmailService(EmailService):
    """Captures outgoing mail instead of calling SendGrid."""

    def __init__(self, succeed: bool = True):
        super().__init__(api_key=None, sender_email=None)
        self.succeed = succeed
        self.sent: List[Dict[str, str]] = []

    def send(self, to_email: str, subject: str, html_content: str) -> bool:
        self.sent.append({"to": to_email, "subject": subject, "html": html_content})
        return self.succeed


class FakePaymentGateway(PaymentGateway):
    """Stripe stand-in; webhook signatures are still verified by the real SDK."""

    def __init__(self):
        super().__init__(api_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET)
        self.customers: List[Dict] = []
        self.checkouts: List[Dict] = []
        self.subscriptions: Dict[str, Dict] = {}

    def create_customer(self, email: str, name: Optional[str], user_id: int) -> str:
        customer_id = f"cus_{len(self.customers) + 1}"
        self.customers.append({"id": customer_id, "email": email, "user_id": user_id})
        return customer_id

    def create_checkout_session(self, customer_id, price_id, success_url, cancel_url, user_id, trial_period_days):
        session_id = f"cs_test_{len(self.checkouts) + 1}"
        self.checkouts.append({
            "id": session_id,
            "customer": customer_id,
            "price": price_id,
            "user_id": user_id,
            "trial_period_days": trial_period_days,
        })
        return {"id": session_id, "url": f"https://checkout.stripe.test/{session_id}"}

    def retrieve_subscription(self, subscription_id: str) -> Dict:
        return self.subscriptions[subscription_id]


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture(name="client")
def client_fixture(session: Session, email_service: RecordingEmailService, gateway: FakePaymentGateway):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_today] = lambda: TODAY
    app.dependency_overrides[get_now] = lambda: NOW
    app.dependency_overrides[get_price_ids] = lambda: PRICE_IDS

    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# ------------------------
# Data helpers
# ------------------------
def make_user(
    session: Session,
    email: str = "owner@example.com",
    name: str = "Owner",
    role: str = UserRole.INDIVIDUAL.value,
    organization_id: Optional[int] = None,
) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=hash_password("password123"),
        role=role,
        organization_id=organization_id,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_organization(session: Session, name: str = "Acme Builders") -> Organization:
    organization = Organization(name=name, industry="construction")
    session.add(organization)
    session.commit()
    session.refresh(organization)
    return organization


def make_deadline(session: Session, user: User, due_date: date, **fields) -> Deadline:
    deadline = Deadline(
        title=fields.pop("title", "Contractor License"),
        due_date=due_date,
        user_id=user.id,
        **fields,
    )
    session.add(deadline)
    session.commit()
    session.refresh(deadline)
    return deadline


def subscribe(session: Session, user: User, tier: str = "pro", status: str = "active") -> Subscription:
    subscription = Subscription(
        user_id=user.id,
        stripe_subscription_id=f"sub_{user.id}_{tier}",
        plan_tier=tier,
        status=status,
    )
    session.add(subscription)
    session.commit()
    session.refresh(subscription)
    return subscription


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}
