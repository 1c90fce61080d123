import logging

from fastapi import APIRouter, HTTPException, Depends, status
from sqlmodel import Session, select
from datetime import datetime
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.models import User, UserRole
from schemas.user_schema import AuthResponse, UserCreate, UserLogin, UserRead
from core.database import get_session
from core.security import (
    hash_password, verify_password, create_token_for_user,
    get_current_user
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(access_token=create_token_for_user(user), user=UserRead.model_validate(user))


# ==========================================================
# ✅ Public Signup — individual account
# ==========================================================
@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(user_data: UserCreate, session: Session = Depends(get_session)):
    """Create an individual account and log it in."""
    email = user_data.email.lower()
    logger.info("📝 Signup attempt for %s", email)

    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        raise HTTPException(
            status_code=400,
            detail="An account with this email already exists. Please log in instead."
        )

    new_user = User(
        name=user_data.name.strip(),
        email=email,
        password_hash=hash_password(user_data.password),
        role=UserRole.INDIVIDUAL.value,
        is_active=True,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )

    try:
        session.add(new_user)
        session.commit()
        session.refresh(new_user)
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=400,
            detail="An account with this email already exists. Please log in instead."
        )
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("❌ Database error during signup: %s", e)
        raise HTTPException(
            status_code=500,
            detail="Something went wrong while creating your account. Please try again later."
        )

    logger.info("✅ User %s signed up", new_user.id)
    return _auth_response(new_user)


# ==========================================================
# ✅ Login
# ==========================================================
@router.post("/login", response_model=AuthResponse)
def login(credentials: UserLogin, session: Session = Depends(get_session)):
    """Authenticate with email and password."""
    db_user = session.exec(select(User).where(User.email == credentials.email.lower())).first()

    if not db_user or not verify_password(credentials.password, db_user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password.")

    if not db_user.is_active:
        raise HTTPException(status_code=403, detail="Your account is inactive. Contact your admin.")

    logger.info("🔑 Login successful for user %s", db_user.id)
    return _auth_response(db_user)


# ==========================================================
# ✅ Get Current Authenticated User
# ==========================================================
@router.get("/me", response_model=UserRead)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's information"""
    return current_user
