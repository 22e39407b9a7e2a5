"""FastAPI application initialization."""

from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from authgate import __version__
from authgate.api.auth import router as auth_router
from authgate.api.middleware import CorrelationIdMiddleware
from authgate.api.users import router as users_router
from authgate.config import get_settings
from authgate.database import close_database, health_check, init_database, run_migrations
from authgate.errors import AppError, Unauthorized
from authgate.services.logging_service import configure_logging, get_logger

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)
    startup_logger = get_logger("main")

    await init_database()
    await run_migrations()
    startup_logger.info("database_initialized")

    startup_logger.info("application_started", log_level=settings.log_level)

    yield

    await close_database()
    startup_logger.info("application_shutdown")


app = FastAPI(
    title="Authgate",
    description="Signup, login, session tokens, role gates and password reset",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an operational error as ``{status, message}``."""
    logger.warning(
        "app_error",
        path=request.url.path,
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        detail=exc.message,
    )

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": exc.status, "message": exc.message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors as 400 with the first field error."""
    errors = exc.errors()
    if errors:
        first_error = errors[0]
        loc = [str(part) for part in first_error.get("loc", ["unknown"]) if part != "body"]
        field = ".".join(loc) or "body"
        message = first_error.get("msg", "Validation failed")
        detail = f"Invalid input data. Field '{field}': {message}"
    else:
        detail = "Invalid input data"

    logger.warning("validation_error", path=request.url.path, detail=detail)

    return JSONResponse(
        status_code=400,
        content={"status": "fail", "message": detail},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the traceback, hide the details."""
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Something went very wrong"},
    )


@app.get("/health")
async def health() -> dict:
    """Report database connectivity."""
    healthy = await health_check()
    return {"status": "ok" if healthy else "degraded", "database": healthy}


# Correlation ID middleware for request tracking and observability
app.add_middleware(CorrelationIdMiddleware)

app.include_router(auth_router)
app.include_router(users_router)
