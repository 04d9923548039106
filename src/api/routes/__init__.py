"""API route modules."""

from .auth import router as auth_router
from .events import router as events_router
from .health import router as health_router
from .statuses import router as statuses_router
from .zoho import router as zoho_router

__all__ = ["auth_router", "events_router", "health_router", "statuses_router", "zoho_router"]
