# sessionward Models
from sessionward.models.token_blacklist import TokenBlacklist
from sessionward.models.user import User

__all__ = [
    "TokenBlacklist",
    "User",
]
