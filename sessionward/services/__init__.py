# sessionward Services
from sessionward.services.auth import AuthService, hash_password, verify_password
from sessionward.services.revocation import Principal, RevocationService, SessionValidator
from sessionward.services.tokens import (
    CookieAttributes,
    IssuedSession,
    TokenIssuer,
    clear_session_cookie,
    parse_duration,
)

__all__ = [
    "AuthService",
    "hash_password",
    "verify_password",
    "Principal",
    "RevocationService",
    "SessionValidator",
    "CookieAttributes",
    "IssuedSession",
    "TokenIssuer",
    "clear_session_cookie",
    "parse_duration",
]
