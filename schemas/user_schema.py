# user_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional
from datetime import datetime


# ---------------------------
# Create & Auth
# ---------------------------
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    # role is always "individual" on signup; organizations change it later


class UserLogin(BaseModel):
    email: EmailStr
    password: str


# ---------------------------
# Read
# ---------------------------
class UserRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    is_active: bool = True
    organization_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
