"""API route modules."""

from .admin import router as admin_router
from .health import router as health_router
from .sync import router as sync_router
from .users import router as users_router
from .webhooks import router as webhooks_router

__all__ = [
    "admin_router",
    "health_router",
    "sync_router",
    "users_router",
    "webhooks_router",
]
