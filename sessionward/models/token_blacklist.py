"""Revoked session tokens, persisted so logout survives process restarts."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from sessionward.core.database import Base


class TokenBlacklist(Base):
    """A logged-out session token, keyed by the raw token string.

    Entries are created on logout and never updated. Once ``expires_at`` has
    passed the token fails validation on its own ``exp`` claim, so the row can
    be purged.
    """

    __tablename__ = "token_blacklist"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<TokenBlacklist {self.id} expires_at={self.expires_at}>"
