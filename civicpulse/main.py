"""
CivicPulse - FastAPI Application Entry Point

Citizens report civic infrastructure problems with a photo; AI estimates
severity, a deterministic scorer ranks the issue, and city admins triage.

DESIGN PRINCIPLES:
- AI assists scoring, it never blocks a submission when unavailable
- Abuse checks run before any paid AI call
- Admins act only within their own city
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from civicpulse.config.firebase import get_bucket, initialize_firestore
from civicpulse.core.exceptions import CivicPulseError, RateLimitError
from civicpulse.core.logging import setup_logging
from civicpulse.core.settings import settings
from civicpulse.routes import auth, health, issues, users
from civicpulse.services.ai_plugin import build_ai_client
from civicpulse.services.image_store import FirebaseImageStore, InMemoryImageStore
from civicpulse.services.issue_intake import IssueIntakeService
from civicpulse.services.notification_service import EmailNotifier
import logging

logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="AI-assisted civic issue reporting and triage",
    debug=settings.DEBUG,
)


@app.exception_handler(CivicPulseError)
async def civicpulse_exception_handler(request: Request, exc: CivicPulseError):
    content = {"detail": exc.message}
    if isinstance(exc, RateLimitError) and exc.retry_after_minutes is not None:
        content["retry_after_minutes"] = exc.retry_after_minutes
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Request validation failed on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions with traceback; never leak the raw message."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def configure_state(application: FastAPI, db, image_store, ai_client=None, notifier=None) -> None:
    """Attach the shared collaborators every request uses."""
    application.state.db = db
    application.state.ai_client = ai_client
    application.state.image_store = image_store
    application.state.notifier = notifier or EmailNotifier.from_settings()
    application.state.intake_service = IssueIntakeService(
        db=db,
        image_store=image_store,
        ai_client=ai_client,
        text_weight=settings.TEXT_SEVERITY_WEIGHT,
        image_weight=settings.IMAGE_SEVERITY_WEIGHT,
    )


@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup:
    Firestore, the image store, the AI client and the email notifier.
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    db = initialize_firestore()
    if settings.USE_MOCK_DB:
        image_store = InMemoryImageStore()
    else:
        image_store = FirebaseImageStore(get_bucket())

    notifier = EmailNotifier.from_settings()
    if not notifier.is_configured():
        logger.warning("SMTP credentials not configured, email notifications are disabled")

    configure_state(app, db=db, image_store=image_store, ai_client=build_ai_client(settings), notifier=notifier)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


app.include_router(health.router)
app.include_router(auth.router)
app.include_router(issues.router)
app.include_router(users.router)


@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
    }
