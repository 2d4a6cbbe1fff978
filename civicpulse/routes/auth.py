"""
Authentication endpoints - email + password registration and login.

Banned emails are refused at both entry points before any password check.
"""

from fastapi import APIRouter, Depends, status
from civicpulse.models.user import AuthResponse, UserLogin, UserRegister, UserResponse
from civicpulse.services.user_service import UserService, public_user
from civicpulse.utils.auth import get_user_service
from civicpulse.utils.security import create_access_token
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: UserRegister, user_service: UserService = Depends(get_user_service)):
    """
    Create a citizen account and return an access token for it.

    Returns 403 for banned emails and 409 when the email is already registered.
    """
    user = user_service.register(
        name=request.name,
        email=request.email,
        password=request.password,
        city=request.city,
    )
    logger.info(f"User registered: {user['id']}")
    return AuthResponse(
        success=True,
        message="User registered successfully",
        user=UserResponse(**public_user(user)),
        access_token=create_access_token(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(request: UserLogin, user_service: UserService = Depends(get_user_service)):
    """Send the returned access_token as `Authorization: Bearer <token>`."""
    user = user_service.authenticate(request.email, request.password)
    logger.info(f"User logged in: {user['id']}")
    return AuthResponse(
        success=True,
        message="Login successful",
        user=UserResponse(**public_user(user)),
        access_token=create_access_token(user),
    )
