"""
API v1 router aggregation.
"""
from fastapi import APIRouter

from qgo_dispatch.api.v1.endpoints import dashboard, drivers, jobs, receipts, session, sync

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(session.router)

api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["Dashboard"],
)

api_router.include_router(
    drivers.router,
    prefix="/drivers",
    tags=["Drivers"],
)

api_router.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["Jobs"],
)

api_router.include_router(
    receipts.router,
    prefix="/receipts",
    tags=["Receipts"],
)

api_router.include_router(
    sync.router,
    prefix="/sync",
    tags=["Sync"],
)
