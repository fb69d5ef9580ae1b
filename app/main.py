"""
Main FastAPI application.

WHY: This is the entry point for the application. It builds the shared
service collaborators, and configures middleware, routes, exception
handlers and the reminder scheduler.
"""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import business_settings, clients, dispatch, email_templates, invoices, reminders, summarize
from app.core.config import settings
from app.core.exception_handlers import (
    app_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.exceptions import AppException
from app.middleware import RequestContextMiddleware, RequestIdLogFilter
from app.services.email import EmailService
from app.services.google_drive_service import GoogleDriveService
from app.services.pdf_service import InvoicePDFRenderer
from app.services.reminder_service import ReminderService
from app.services.scheduler import get_scheduler_status, shutdown_scheduler, start_scheduler
from app.services.storage_service import StorageService
from app.services.summarize_service import SummarizeService

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


def configure_logging() -> None:
    """Root logging with the request ID in every line."""
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdLogFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        handlers=[handler],
    )


def init_services(app: FastAPI) -> None:
    """
    Build the shared collaborators once and keep them on app.state.

    WHY: HTTP clients, the S3 client and the renderer are safe to share
    across requests; routes get them through app.core.deps, and tests
    replace them with dependency_overrides.
    """
    app.state.email_service = EmailService()
    app.state.storage_service = StorageService()
    app.state.drive_service = GoogleDriveService()
    app.state.pdf_renderer = InvoicePDFRenderer()
    app.state.summarize_service = SummarizeService()
    app.state.reminder_service = ReminderService(app.state.email_service)
    app.state.scheduler = None


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    WHY: Factory pattern allows easier testing with different configurations
    and makes it possible to create multiple app instances if needed.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Invoicing and client management API",
        version=settings.VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    init_services(app)

    # Register exception handlers
    # WHY: Every error leaves the API as {error, message, status_code, details}
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_middleware(RequestContextMiddleware)

    # Configure CORS
    # WHY: The web client runs on a different origin during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint.

        WHY: Lets monitoring see both liveness and whether the reminder
        scan is scheduled.
        """
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "scheduler": get_scheduler_status(app.state.scheduler),
        }

    @app.on_event("startup")
    async def startup_event():
        """Start the reminder scheduler unless disabled."""
        if not settings.REMINDER_SCAN_ENABLED:
            logger.info("Reminder scan disabled (REMINDER_SCAN_ENABLED=false)")
            return
        app.state.scheduler = start_scheduler(app.state.reminder_service)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Stop the scheduler so a running scan can finish."""
        shutdown_scheduler(app.state.scheduler)
        app.state.scheduler = None

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/api/docs",
        }

    # Register API routers
    app.include_router(clients.router, prefix=settings.API_V1_PREFIX)
    app.include_router(business_settings.router, prefix=settings.API_V1_PREFIX)
    app.include_router(email_templates.router, prefix=settings.API_V1_PREFIX)
    app.include_router(invoices.router, prefix=settings.API_V1_PREFIX)
    app.include_router(dispatch.router, prefix=settings.API_V1_PREFIX)
    app.include_router(reminders.router, prefix=settings.API_V1_PREFIX)
    app.include_router(summarize.router, prefix=settings.API_V1_PREFIX)

    return app


configure_logging()

# Create app instance
# WHY: Importable by uvicorn as app.main:app
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info" if settings.DEBUG else "warning",
    )
