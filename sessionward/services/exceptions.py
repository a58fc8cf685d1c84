"""Authentication and session errors raised by the service layer."""


class AuthError(Exception):
    """Base authentication error."""

    pass


class InvalidCredentialsError(AuthError):
    """Invalid identifier or password."""

    pass


class UserInactiveError(AuthError):
    """User account is disabled."""

    pass


class RegistrationError(AuthError):
    """Email or username already in use."""

    pass


class UserNotFoundError(AuthError):
    """No user record for the id carried by a token."""

    pass


class TokenError(AuthError):
    """JWT token error."""

    pass


class TokenExpiredError(TokenError):
    """JWT token has expired."""

    pass


class InvalidTokenError(TokenError):
    """JWT token is invalid or could not be decoded."""

    pass


class MissingCredentialError(TokenError):
    """No session cookie or bearer header on the request."""

    pass


class TokenRevokedError(TokenError):
    """Token is on the revocation list."""

    pass


class AlreadyRevokedError(TokenError):
    """Token was revoked before; raised when the unique insert loses."""

    pass
