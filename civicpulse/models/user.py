"""
User models for registration, login and reporter trust.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class UserRegister(BaseModel):
    """Model for creating a new user."""
    name: str = Field(..., min_length=1, max_length=100, description="User's name")
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    city: Optional[str] = Field(None, max_length=100, description="City used to tag reported issues")


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Model for user responses."""
    id: str = Field(..., description="Firestore document ID")
    name: str
    email: str
    role: UserRole = UserRole.USER
    city: Optional[str] = None
    trust_score: int = Field(default=100, ge=0, le=100, description="Reporter reputation, decremented on fake reports")
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    """Authentication response."""
    success: bool
    message: str
    user: Optional[UserResponse] = None
    access_token: Optional[str] = None
    token_type: str = "bearer"


class UserProfileUpdate(BaseModel):
    """Fields a user may change on their own profile; omitted fields are kept."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
