"""Session token issuance and auth cookie construction.

Tokens are HMAC-signed JWTs carrying the user's identity claims. The same
duration string drives both the ``exp`` claim and the cookie ``Max-Age``, and
the setting and clearing cookies are rendered from one attribute factory so
they can never disagree on ``Path``/``Domain``.
"""

import math
import re
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

from sessionward.core.config import SessionConfig
from sessionward.core.logging import get_logger
from sessionward.services.exceptions import InvalidTokenError, TokenExpiredError

logger = get_logger("tokens")

DEFAULT_TOKEN_LIFETIME = timedelta(days=1)

_DURATION_RE = re.compile(r"^(\d+)([dhms])$")
_DURATION_UNITS = {
    "d": "days",
    "h": "hours",
    "m": "minutes",
    "s": "seconds",
}

# PyJWT >= 2.10 insists on a string "sub"; ours is the numeric user id
_DECODE_OPTIONS = {"verify_sub": False}


def parse_duration(duration: str) -> timedelta:
    """Parse a duration string such as ``60m``, ``7h``, ``1d`` or ``30s``.

    Anything that is not ``<integer><d|h|m|s>`` falls back to one day.
    """
    match = _DURATION_RE.match((duration or "").strip())
    if match is None:
        logger.debug(f"Unrecognized token lifetime {duration!r}, defaulting to 1 day")
        return DEFAULT_TOKEN_LIFETIME
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def expiration_date(duration: str, now: datetime | None = None) -> datetime:
    """Absolute expiry instant for a token issued at ``now``."""
    now = now or datetime.now(UTC)
    return now + parse_duration(duration)


def max_age_seconds(expires_at: datetime, now: datetime) -> int:
    return math.floor((expires_at - now).total_seconds())


@dataclass(frozen=True)
class CookieAttributes:
    """Attributes of the auth cookie, rendered as a Set-Cookie header value."""

    name: str
    value: str
    max_age: int
    domain: str | None = None
    http_only: bool = True
    path: str = "/"
    same_site: str = "Strict"
    secure: bool = True

    def render(self) -> str:
        parts = [f"{self.name}={self.value}"]
        if self.http_only:
            parts.append("HttpOnly")
        parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        parts.append(f"SameSite={self.same_site}")
        if self.secure:
            parts.append("Secure")
        parts.append(f"Max-Age={self.max_age}")
        return "; ".join(parts)


def session_cookie(config: SessionConfig, token: str, max_age: int) -> CookieAttributes:
    return CookieAttributes(
        name=config.cookie_name,
        value=token,
        max_age=max_age,
        domain=config.cookie_domain,
    )


def clear_session_cookie(config: SessionConfig) -> CookieAttributes:
    """Empty, immediately expiring cookie with the same attributes as the session cookie."""
    return session_cookie(config, "", 0)


@dataclass(frozen=True)
class IssuedSession:
    token: str
    cookie: CookieAttributes
    expires_at: datetime

    @property
    def max_age(self) -> int:
        return self.cookie.max_age

    @property
    def set_cookie_header(self) -> str:
        return self.cookie.render()


class TokenIssuer:
    """Signs session tokens for authenticated users."""

    def __init__(self, config: SessionConfig):
        self.config = config

    def build_claims(self, user: Any) -> dict[str, Any]:
        # Missing attributes become null claims rather than an error
        return {
            "sub": getattr(user, "id", None),
            "username": getattr(user, "username", None),
            "email": getattr(user, "email", None),
            "verified": getattr(user, "verified", None),
        }

    def issue(self, user: Any, now: datetime | None = None) -> IssuedSession:
        """Sign a token for ``user`` and build the cookie that carries it.

        The caller has already verified the password and that the account
        is not disabled.
        """
        now = now or datetime.now(UTC)
        expires_at = expiration_date(self.config.expires_in, now)

        payload = self.build_claims(user)
        payload["iat"] = int(now.timestamp())
        payload["exp"] = int(expires_at.timestamp())
        # Unique per issuance: logins within the same second get distinct tokens
        payload["jti"] = secrets.token_hex(16)

        token = jwt.encode(payload, self.config.secret, algorithm=self.config.algorithm)
        cookie = session_cookie(self.config, str(token), max_age_seconds(expires_at, now))
        return IssuedSession(token=str(token), cookie=cookie, expires_at=expires_at)


def decode_token(token: str, config: SessionConfig) -> dict[str, Any]:
    """Decode and validate a session token (signature and expiry)."""
    try:
        return jwt.decode(
            token,
            config.secret,
            algorithms=[config.algorithm],
            options=_DECODE_OPTIONS,
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except PyJWTError as e:
        raise InvalidTokenError(f"Invalid token: {e}") from e


def read_unverified_claims(token: str) -> dict[str, Any]:
    """Read claims without checking the signature.

    Only for bookkeeping on tokens that were already authenticated.
    """
    try:
        payload = jwt.decode(
            token,
            options={**_DECODE_OPTIONS, "verify_signature": False, "verify_exp": False},
        )
    except PyJWTError as e:
        raise InvalidTokenError("Invalid token") from e
    if not isinstance(payload, dict):
        raise InvalidTokenError("Invalid token")
    return payload
