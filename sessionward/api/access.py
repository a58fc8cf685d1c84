"""Per-route authentication requirements and the single gate that enforces them.

Every route's requirement is declared as data in ``ROUTE_ACCESS``. The gate is
installed as an application-wide dependency, so it runs once per matched
request before the endpoint. Routes missing from the table require a session.
"""

import logging
from enum import Enum

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sessionward.core import SessionConfig, get_db, settings
from sessionward.core.logging import get_logger, log_auth_event
from sessionward.services.exceptions import (
    InvalidTokenError,
    MissingCredentialError,
    TokenExpiredError,
    TokenRevokedError,
)
from sessionward.services.revocation import Principal, SessionValidator

logger = get_logger("api.access")


class Access(str, Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"


ROUTE_ACCESS: dict[tuple[str, str], Access] = {
    ("GET", "/"): Access.PUBLIC,
    ("GET", "/health"): Access.PUBLIC,
    ("POST", "/auth/register"): Access.PUBLIC,
    ("POST", "/auth/login"): Access.PUBLIC,
    ("POST", "/auth/logout"): Access.AUTHENTICATED,
    ("GET", "/auth/profile"): Access.AUTHENTICATED,
}

DEFAULT_ACCESS = Access.AUTHENTICATED


def required_access(method: str, path: str) -> Access:
    """Access level for a route template path such as ``/auth/profile``."""
    return ROUTE_ACCESS.get((method.upper(), path), DEFAULT_ACCESS)


def get_session_config() -> SessionConfig:
    """Dependency providing the token configuration."""
    return settings.session_config


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Session token from the auth cookie, else from ``Authorization: Bearer``."""
    token = request.cookies.get(cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:] or None  # Remove "Bearer " prefix
    return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def session_gate(
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: SessionConfig = Depends(get_session_config),
) -> None:
    """Authenticate the request if its route requires a session.

    On success the caller's identity is stored on ``request.state.principal``.
    """
    route = request.scope.get("route")
    path = getattr(route, "path", request.url.path)
    if required_access(request.method, path) is Access.PUBLIC:
        return

    token = extract_token(request, config.cookie_name)
    try:
        principal = await SessionValidator(db, config).authenticate(token)
    except MissingCredentialError as e:
        log_auth_event(
            logger,
            "session_rejected",
            "Request without session",
            level=logging.DEBUG,
            method=request.method,
            route=path,
            reason="missing",
        )
        raise _unauthorized("Authentication required") from e
    except TokenExpiredError as e:
        log_auth_event(
            logger,
            "session_rejected",
            "Expired token",
            method=request.method,
            route=path,
            reason="expired",
        )
        raise _unauthorized("Token has expired") from e
    except TokenRevokedError as e:
        log_auth_event(
            logger,
            "session_rejected",
            "Revoked token presented",
            level=logging.WARNING,
            method=request.method,
            route=path,
            reason="revoked",
        )
        raise _unauthorized("Token has been revoked") from e
    except InvalidTokenError as e:
        log_auth_event(
            logger,
            "session_rejected",
            f"Invalid token: {e}",
            level=logging.WARNING,
            method=request.method,
            route=path,
            reason="invalid",
        )
        raise _unauthorized("Invalid token") from e

    request.state.principal = principal


def get_principal(request: Request) -> Principal:
    """Dependency returning the identity the gate attached to the request."""
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise _unauthorized("Authentication required")
    return principal
