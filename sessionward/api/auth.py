"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sessionward.api.access import extract_token, get_principal, get_session_config
from sessionward.core import SessionConfig, get_db
from sessionward.core.logging import get_logger, log_auth_event
from sessionward.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    RegisterRequest,
    UserResponse,
    to_profile_response,
    to_user_response,
)
from sessionward.services.auth import AuthService
from sessionward.services.exceptions import (
    AlreadyRevokedError,
    InvalidCredentialsError,
    InvalidTokenError,
    RegistrationError,
    UserInactiveError,
    UserNotFoundError,
)
from sessionward.services.revocation import Principal, RevocationService
from sessionward.services.tokens import TokenIssuer, clear_session_cookie

logger = get_logger("api.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(db)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Register a new user.

    Returns 400 if the email or username is already taken.
    """
    try:
        user = await auth_service.register(
            email=request.email,
            password=request.password,
            username=request.username,
            name=request.name,
        )
    except RegistrationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return to_user_response(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    config: SessionConfig = Depends(get_session_config),
) -> LoginResponse:
    """Authenticate with an email or username and start a cookie session."""
    try:
        user = await auth_service.authenticate(
            identifier=request.identifier,
            password=request.password,
        )
    except InvalidCredentialsError as e:
        log_auth_event(
            logger, "login_failed", "Login rejected", reason="invalid_credentials"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        ) from e
    except UserInactiveError as e:
        log_auth_event(logger, "login_failed", "Login rejected", reason="disabled")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Your account is disabled",
        ) from e

    issued = TokenIssuer(config).issue(user)
    response.headers.append("set-cookie", issued.set_cookie_header)
    log_auth_event(logger, "login", "User logged in", user_id=user.id)
    return LoginResponse(message="Login successful", expires_in=issued.max_age)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
    config: SessionConfig = Depends(get_session_config),
) -> MessageResponse:
    """Revoke the current session token and clear the auth cookie.

    The cookie is only cleared once the revocation has been committed.
    """
    token = extract_token(request, config.cookie_name)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")

    try:
        await RevocationService(db, config).revoke(token)
    except InvalidTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token") from e
    except AlreadyRevokedError:
        # A concurrent logout with the same token committed first
        log_auth_event(
            logger,
            "logout_raced",
            "Token was revoked by a concurrent logout",
            user_id=principal.user_id,
        )

    response.headers.append("set-cookie", clear_session_cookie(config).render())
    log_auth_event(logger, "logout", "User logged out", user_id=principal.user_id)
    return MessageResponse(message="Logout successful")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    principal: Principal = Depends(get_principal),
    auth_service: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    """Get the current user's profile."""
    try:
        user = await auth_service.get_user_profile(principal.user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return to_profile_response(user)
