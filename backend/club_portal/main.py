"""
Club Portal - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Maps domain errors to JSON error responses
5. Registers all API route handlers and the health check

The application follows a modular architecture:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: persistence gateway and business rules
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from club_portal import __version__
from club_portal.config import get_settings
from club_portal.errors import PortalError
from club_portal.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from club_portal.routes import analytics, attendance, auth, sessions, students, tests
from club_portal.database import DATABASE_URL, create_tables

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")

# Auto-create tables for SQLite local development
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()

app = FastAPI(
    title="Club Portal",
    description=(
        "Student club administration: registration, student and admin login, "
        "session-code attendance check-in, quizzes with scoring, and admin analytics."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    Tag every request with a UUID, expose it as X-Request-ID and log
    request start/completion with latency.
    """
    req_id = generate_request_id()
    request_id_var.set(req_id)
    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", ""),
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    """Domain errors become `{"detail", "reason"}` with the error's status code."""
    level = "ERROR" if exc.status_code >= 500 else "INFO"
    log_with_context(logger, level,
        f"{request.method} {request.url.path} failed: {exc.message}",
        extra_data={"reason": exc.reason, "status_code": exc.status_code})
    return JSONResponse(status_code=exc.status_code,
                        content={"detail": exc.message, "reason": exc.reason})


app.include_router(auth.router, tags=["Auth"])
app.include_router(students.router, tags=["Students"])
app.include_router(sessions.router, tags=["Sessions"])
app.include_router(attendance.router, tags=["Attendance"])
app.include_router(tests.router, tags=["Tests"])
app.include_router(analytics.router, tags=["Analytics"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for Docker health checks and monitoring."""
    return {"status": "healthy", "service": "club-portal-backend", "version": __version__}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Club Portal",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "student_login": "POST /api/auth/student/login",
            "admin_login": "POST /api/auth/admin/login",
            "register": "POST /api/students",
            "sessions": "GET /api/sessions",
            "mark_attendance": "POST /api/attendance/mark",
            "take_test": "GET /api/tests/{id}?session_id=",
            "submit_test": "POST /api/tests/{id}/submit",
            "analytics": "GET /api/analytics/students"
        }
    }
