"""
API Router Aggregator.

Combines all API routers into a single router for the main app.
"""

from fastapi import APIRouter

from recruitcrm.api.routes import auth, candidates, companies, contact, debug, notifications, users

api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

api_router.include_router(
    users.router,
    prefix="/users",
    tags=["Users"],
)

api_router.include_router(
    candidates.router,
    prefix="/candidates",
    tags=["Candidates"],
)

api_router.include_router(
    companies.router,
    prefix="/companies",
    tags=["Companies"],
)

api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notifications"],
)

api_router.include_router(
    contact.router,
    prefix="/contact",
    tags=["Contact"],
)

api_router.include_router(
    debug.router,
    prefix="/debug",
    tags=["Debug"],
)
