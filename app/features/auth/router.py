from fastapi import APIRouter, Depends, status
from typing import Optional
from app.features.auth.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from app.features.auth.service import AuthService
from app.features.auth.dependencies import get_current_session, get_current_user, get_optional_user
from app.dependencies import get_storage
from app.shared.schemas import MessageResponse
from app.storage import Storage
from app.storage.models import User


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage),
):
    """
    Register a new user with its profile and log them in.

    Anyone may register as a patient. Staff and admin accounts can only be
    created by a logged-in admin.

    - **user**: Account data (username, password, email, full_name, role)
    - **profile**: Patient profile for role `patient`, staff profile for `staff` and `admin`
    """
    user, access_token = await AuthService.register(storage, request, current_user)

    return AuthResponse(
        access_token=access_token,
        user=AuthService.user_to_response(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, storage: Storage = Depends(get_storage)):
    """
    Authenticate user and return access token.

    - **username**: User's username
    - **password**: User's password
    """
    user, access_token = await AuthService.login(storage, request)

    return AuthResponse(
        access_token=access_token,
        user=AuthService.user_to_response(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    session: dict = Depends(get_current_session),
    storage: Storage = Depends(get_storage),
):
    """End the current session. The token stops working immediately."""
    await AuthService.logout(storage, session["sid"])
    return MessageResponse(message="Logged out")


@router.get("/user", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return AuthService.user_to_response(current_user)
