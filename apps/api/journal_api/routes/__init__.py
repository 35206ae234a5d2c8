"""Route modules."""

from .admin import router as admin_router
from .journal import router as journal_router
from .public import router as public_router
from .users import router as users_router

__all__ = ["admin_router", "journal_router", "public_router", "users_router"]
