"""
Testcraft API application.

Serves the /api/tests endpoints that the editor's TestServiceClient talks
to. Importing this module configures JSON logging and, on SQLite, creates
the schema directly instead of going through Alembic.

Every response carries an X-Request-ID header; a caller-supplied id is
reused so editor-side and server-side log lines can be joined.
"""

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from testcraft import __version__
from testcraft.config import settings
from testcraft.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from testcraft.routes import tests
from testcraft.database import DATABASE_URL, create_tables

setup_logging()
logger = get_logger("http")

# Alembic manages PostgreSQL; SQLite databases are created on import
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()

app = FastAPI(
    title="Testcraft",
    description=(
        "Authoring service for timed online tests: test settings, sections, "
        "questions and answer options, saved as one atomic tree."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag every request with an id that appears in its log lines and response."""
    req_id = request.headers.get("X-Request-ID") or generate_request_id()
    request_id_var.set(req_id)

    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", ""),
            "query_params": dict(request.query_params)
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} -> {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


app.include_router(tests.router, tags=["Tests"])


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe."""
    return {"status": "healthy", "service": "testcraft-backend", "version": __version__}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Testcraft",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "create": "POST /api/tests",
            "list": "GET /api/tests",
            "detail": "GET /api/tests/{id}",
            "save": "PUT /api/tests/{id}"
        }
    }
