"""
FastAPI application entry point for QGO Fleet Dispatch.

Admins assign delivery jobs to drivers, drivers advance job status and log
expense receipts; every client mirrors the shared document store live.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from qgo_dispatch.api.v1 import api_router
from qgo_dispatch.core.config import get_settings, settings
from qgo_dispatch.core.exceptions import (
    AlreadyExists,
    InvalidCredentials,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    StoreError,
    StoreUnconfigured,
)
from qgo_dispatch.core.logging import configure_logging
from qgo_dispatch.db.database import init_db
from qgo_dispatch.services.session import SessionStore
from qgo_dispatch.services.storage import LocalStorage
from qgo_dispatch.services.store import SqlDocumentStore, get_document_store
from qgo_dispatch.services.sync import SyncController

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Startup restores the session and opens the live subscriptions;
    shutdown closes them.
    """
    config = get_settings()
    configure_logging(config.log_level, config.log_file)
    logger.info(f"{config.app_name} {config.app_version} starting up")

    store = get_document_store(config)
    # Note: In production, use Alembic migrations instead of init_db
    if config.debug and isinstance(store, SqlDocumentStore):
        await init_db(store.engine)

    session_store = SessionStore(
        LocalStorage(config.local_storage_path),
        key=config.session_storage_key,
    )
    controller = SyncController(store, session_store)
    app.state.session_store = session_store
    app.state.controller = controller

    await controller.start()
    if not await controller.wait_until_ready(config.ready_timeout_seconds):
        logger.warning("Not every collection delivered a snapshot yet, continuing anyway")

    yield

    logger.info("Shutting down")
    await controller.stop()
    if store is not None:
        await store.close()


# Store and domain errors -> HTTP status codes
ERROR_STATUS: dict[type[Exception], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    AlreadyExists: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    StoreUnconfigured: status.HTTP_503_SERVICE_UNAVAILABLE,
    StoreError: status.HTTP_502_BAD_GATEWAY,
}


async def dispatch_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = next(
        code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_application() -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title=settings.app_name,
        description="""
        ## QGO Fleet Dispatch

        - **Admin dashboard**: manage drivers, assign jobs, review receipts
        - **Driver portal**: advance own jobs, report location, log expenses
        - **Live sync**: drivers, jobs and receipts mirrored from the shared
          document store; fixture data when no store is configured
        """,
        version=settings.app_version,
        openapi_url=f"{settings.api_v1_prefix}/openapi.json",
        docs_url=f"{settings.api_v1_prefix}/docs",
        redoc_url=f"{settings.api_v1_prefix}/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 2)
        logger.debug(f"{request.method} {request.url.path} -> {response.status_code} ({duration}ms)")
        return response

    for error_type in (StoreError, InvalidTransition, InvalidCredentials):
        app.add_exception_handler(error_type, dispatch_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


# Create application instance
app = create_application()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": f"{settings.api_v1_prefix}/docs",
        "openapi": f"{settings.api_v1_prefix}/openapi.json",
    }
