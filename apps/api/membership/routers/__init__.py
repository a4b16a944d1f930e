from .auth import router as auth_router
from .members import router as members_router
from .bookings import router as bookings_router
from .emails import router as emails_router
from .export import router as export_router

ROUTERS = (auth_router, members_router, bookings_router, emails_router, export_router)

__all__ = [
    "ROUTERS",
    "auth_router",
    "members_router",
    "bookings_router",
    "emails_router",
    "export_router",
]
