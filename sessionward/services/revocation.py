"""Token revocation (logout) and request-time session validation.

The ``token_blacklist`` table is the source of truth: a token is rejected as
soon as the transaction that revoked it has committed. Its unique index on
``token`` is the only coordination between concurrent logouts.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionward.core.config import SessionConfig
from sessionward.core.logging import get_logger, log_auth_event
from sessionward.models.token_blacklist import TokenBlacklist
from sessionward.services.exceptions import (
    AlreadyRevokedError,
    InvalidTokenError,
    MissingCredentialError,
    TokenRevokedError,
)
from sessionward.services.tokens import decode_token, read_unverified_claims

logger = get_logger("revocation")


def token_expiry(claims: dict[str, Any]) -> datetime:
    """Absolute expiry from the ``exp`` claim (epoch seconds)."""
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, int | float):
        raise InvalidTokenError("Invalid token")
    try:
        return datetime.fromtimestamp(exp, tz=UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise InvalidTokenError("Invalid token") from e


class RevocationService:
    """Persists logged-out tokens and answers "is this token revoked?"."""

    def __init__(self, session: AsyncSession, config: SessionConfig):
        self.session = session
        self.config = config

    async def revoke(self, token: str) -> TokenBlacklist:
        """Record ``token`` as revoked until its natural expiry.

        The token is only decoded to read ``exp``; its signature was checked
        when the request was authenticated.

        Raises:
            InvalidTokenError: token is undecodable or has no numeric ``exp``.
            AlreadyRevokedError: another logout recorded the same token first.
        """
        claims = read_unverified_claims(token)
        expires_at = token_expiry(claims)

        record = TokenBlacklist(token=token, expires_at=expires_at)
        self.session.add(record)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            log_auth_event(
                logger,
                "revoke_conflict",
                "Token was already revoked",
                user_id=claims.get("sub"),
            )
            raise AlreadyRevokedError("Token has already been revoked") from e

        log_auth_event(
            logger,
            "token_revoked",
            f"Revoked token until {expires_at.isoformat()}",
            user_id=claims.get("sub"),
        )
        return record

    async def is_revoked(self, token: str) -> bool:
        result = await self.session.execute(
            select(TokenBlacklist.id).where(TokenBlacklist.token == token)
        )
        return result.scalar_one_or_none() is not None

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete records whose token has expired anyway. Returns count removed."""
        now = now or datetime.now(UTC)
        result: CursorResult[Any] = await self.session.execute(  # type: ignore[assignment]
            delete(TokenBlacklist).where(TokenBlacklist.expires_at < now)
        )
        await self.session.commit()
        return result.rowcount or 0


@dataclass(frozen=True)
class Principal:
    """Identity of an authenticated request, taken from the signed claims."""

    user_id: Any
    username: str | None


class SessionValidator:
    """Runs once per authenticated request."""

    def __init__(self, session: AsyncSession, config: SessionConfig):
        self.config = config
        self.revocations = RevocationService(session, config)

    async def authenticate(self, token: str | None) -> Principal:
        """Verify ``token`` and check it against the revocation list.

        Raises:
            MissingCredentialError: no token was sent.
            TokenExpiredError / InvalidTokenError: verification failed.
            TokenRevokedError: the token was logged out.
        """
        if not token:
            raise MissingCredentialError("Authentication required")

        payload = decode_token(token, self.config)

        if await self.revocations.is_revoked(token):
            raise TokenRevokedError("Token has been revoked")

        return Principal(user_id=payload.get("sub"), username=payload.get("username"))
