"""Authentication service: password hashing, registration and login checks."""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionward.core.logging import get_logger, log_auth_event
from sessionward.models.user import User
from sessionward.services.exceptions import (
    InvalidCredentialsError,
    RegistrationError,
    UserInactiveError,
    UserNotFoundError,
)

logger = get_logger("auth")

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        ph.verify(password_hash, password)
        return True
    except (VerifyMismatchError, InvalidHashError):
        return False


class AuthService:
    """Credential store operations backing register, login and profile."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> User | None:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_user_by_identifier(self, identifier: str) -> User | None:
        """Look a user up by email or username."""
        result = await self.session.execute(
            select(User).where(or_(User.email == identifier, User.username == identifier))
        )
        return result.scalars().first()

    async def get_user_by_id(self, user_id: int) -> User | None:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def register(
        self,
        email: str,
        password: str,
        username: str | None = None,
        name: str | None = None,
    ) -> User:
        """Create a user with a hashed password.

        Raises RegistrationError if the email or username is taken, including
        when a concurrent registration claims it between the check and the insert.
        """
        if await self.get_user_by_email(email) is not None:
            raise RegistrationError("Email already in use")
        if username and await self.get_user_by_username(username) is not None:
            raise RegistrationError("Username already in use")

        password_hash = hash_password(password)
        user = User(
            email=email,
            username=username,
            name=name,
            password_hash=password_hash,
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise RegistrationError("Email or username already in use") from e
        await self.session.refresh(user)

        log_auth_event(logger, "register", "Registered user", user_id=user.id)
        return user

    async def authenticate(self, identifier: str, password: str) -> User:
        """Authenticate a user and return the user object.

        Raises InvalidCredentialsError for both "user not found" and
        "wrong password" to prevent user enumeration.
        """
        user = await self.get_user_by_identifier(identifier)

        if user is None:
            # Perform a dummy hash to prevent timing attacks
            verify_password(password, hash_password("dummy"))
            raise InvalidCredentialsError("Invalid credentials")

        if user.disabled:
            raise UserInactiveError("Your account is disabled")

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")

        return user

    async def get_user_profile(self, user_id: int) -> User:
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError("User not found")
        return user
