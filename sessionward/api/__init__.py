"""sessionward API routers."""

from sessionward.api.access import ROUTE_ACCESS, Access, session_gate
from sessionward.api.auth import router as auth_router
from sessionward.api.health import router as health_router

__all__ = [
    "ROUTE_ACCESS",
    "Access",
    "session_gate",
    "auth_router",
    "health_router",
]
