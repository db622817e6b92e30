from typing import Optional, Tuple
from pydantic import ValidationError

from app.config import settings
from app.features.auth.schemas import (
    LoginRequest,
    PatientProfileRequest,
    RegisterRequest,
    StaffProfileRequest,
    UserResponse,
)
from app.core.security import (
    create_access_token,
    generate_session_id,
    get_password_hash,
    verify_password,
)
from app.shared.exceptions import (
    BadRequestException,
    CredentialsException,
    ForbiddenException,
    http_error_from_storage,
)
from app.storage import Storage, UsernameAlreadyExists
from app.storage.models import User, UserRole
from app.core.logging import logger


class AuthService:
    """Authentication service for handling auth business logic."""

    @staticmethod
    def user_to_response(user: User) -> UserResponse:
        """Convert a stored user to its public representation."""
        return UserResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            phone=user.phone,
            profile_image=user.profile_image,
            created_at=user.created_at,
        )

    @staticmethod
    async def create_session(storage: Storage, user: User) -> str:
        """
        Open a session for a user and return the access token pointing at it.

        The token only carries the user id and the session id; logging out
        destroys the session, which invalidates the token.
        """
        sid = generate_session_id()
        await storage.session_store.set(
            sid,
            {"user_id": user.id},
            max_age=settings.SESSION_MAX_AGE_SECONDS,
        )
        return create_access_token(data={"sub": str(user.id), "sid": sid})

    @staticmethod
    async def register(
        storage: Storage,
        request: RegisterRequest,
        current_user: Optional[User] = None,
    ) -> Tuple[User, str]:
        """
        Register a new user together with its patient or staff profile.

        Staff and admin accounts require ``current_user`` to be an admin.

        Raises:
            ForbiddenException: If a non-admin tries to create a staff or admin account

        Returns:
            tuple: (user, access_token)
        """
        if request.user.role != UserRole.PATIENT and (
            current_user is None or current_user.role != UserRole.ADMIN
        ):
            logger.warning(f"Rejected {request.user.role.value} registration for {request.user.username}")
            raise ForbiddenException("Only administrators can register staff accounts")

        user_data = request.user.model_dump()
        user_data["password"] = get_password_hash(request.user.password)

        try:
            if request.user.role == UserRole.PATIENT:
                profile = PatientProfileRequest.model_validate(request.profile)
                user = await storage.register_patient(user_data, profile)
            else:
                profile = StaffProfileRequest.model_validate(request.profile)
                user = await storage.register_staff(user_data, profile)
        except ValidationError as e:
            raise BadRequestException(f"Invalid profile data: {e.error_count()} error(s)")
        except UsernameAlreadyExists as e:
            logger.info(f"Registration rejected, username taken: {e.username}")
            raise http_error_from_storage(e)

        access_token = await AuthService.create_session(storage, user)
        return user, access_token

    @staticmethod
    async def login(storage: Storage, request: LoginRequest) -> Tuple[User, str]:
        """
        Authenticate user and return access token.

        Returns:
            tuple: (user, access_token)
        """
        user = await storage.get_user_by_username(request.username)
        if not user or not verify_password(request.password, user.password):
            raise CredentialsException("Invalid username or password")

        access_token = await AuthService.create_session(storage, user)
        logger.info(f"User {user.username} logged in")
        return user, access_token

    @staticmethod
    async def logout(storage: Storage, sid: str) -> bool:
        """Destroy a session. Returns False if it was already gone."""
        return await storage.session_store.destroy(sid)
