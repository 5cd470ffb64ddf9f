"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.api import router as api_router
from app.core.config import settings
from app.core.database import init_db
from app.core.exceptions import AppError
from app.core.logging import configure_logging
from app.models import *  # noqa: F401, F403 - registers models on Base.metadata before init_db
from app.services.storage_service import BUCKETS

logger = logging.getLogger(__name__)

# Swagger docs at /docs (OpenAPI 3)
OPENAPI_TAGS = [
    {"name": "auth", "description": "Login and sign-up. Login returns a JWT for protected endpoints."},
    {"name": "api", "description": "General v1 endpoints, including the current user's profile."},
    {"name": "users", "description": "Account administration: approval, rejection, role and status."},
    {"name": "students", "description": "Student directory, filters and spreadsheet import."},
    {"name": "sessions", "description": "Classes and events, with the roster of expected students."},
    {"name": "attendance", "description": "Attendance marking and signature-verified check-in."},
    {"name": "signatures", "description": "Signature images, comparison and verification model training."},
    {"name": "excuses", "description": "Excuse applications and their review."},
    {"name": "academic-years", "description": "Academic years and semesters; one active at a time."},
    {"name": "allowed-terms", "description": "Academic year and semester labels open for use (admin managed)."},
    {"name": "reports", "description": "Attendance summaries and PDF reports."},
    {"name": "health", "description": "Service status."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown."""
    configure_logging()
    for bucket in BUCKETS:
        (Path(settings.storage_root) / bucket).mkdir(parents=True, exist_ok=True)
    await init_db()
    logger.info("%s started", settings.app_name)
    yield


app = FastAPI(
    title=settings.app_name,
    description="""
REST API for school attendance: students, sessions, attendance, signatures,
excuse applications and the academic calendar.

## Authentication

1. Get a token from **POST /api/v1/auth/login** and copy `access_token`.
2. In Swagger UI click **Authorize** and paste only the token (without "Bearer").
""",
    version="0.1.0",
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    swagger_ui_parameters={"persistAuthorization": True},
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")

# Public URLs of stored objects (signatures, excuse letters)
app.mount("/storage", StaticFiles(directory=settings.storage_root, check_dir=False), name="storage")


@app.get("/health", tags=["health"], summary="Service status")
async def health_check():
    """No authentication required."""
    return {"status": "ok", "message": "Service running"}
