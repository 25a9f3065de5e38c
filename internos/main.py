"""
InternOS API - Main Application Entry Point

FastAPI application serving the internship management API: auth, task
lifecycle, comments, activity log, messaging, dashboard and user directory.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from config import settings
from . import __version__
from .database import init_database, close_database, get_database
from .database.exceptions import DatabaseConstraintError
from .middleware.slowapi_limiter import setup_rate_limiting
from .monitoring import metrics_middleware, update_db_pool_metrics
from .services.exceptions import ServiceError
from .services.storage import get_file_storage
from .utils.datetime_utils import utc_now, isoformat_utc
from .web import routers

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    logger.info("Starting InternOS API...")

    if not settings.jwt_key:
        logger.critical("JWT_KEY is not configured; refusing to start")
        raise RuntimeError("JWT_KEY is not configured")

    if not await init_database():
        logger.critical("Database failed to initialize; refusing to start")
        raise RuntimeError("Database failed to initialize")
    logger.info("Database initialized")

    await get_file_storage().ensure_root()
    logger.info(f"Uploads served from {settings.uploads_dir}")

    yield

    logger.info("Shutting down...")
    try:
        await close_database()
    except Exception as e:
        logger.warning(f"Failed to close database during shutdown: {e}")

    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Role-based internship management: tasks, reviews, messaging and audit trail",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.middleware("http")(metrics_middleware)

setup_rate_limiting(app)

for router in routers:
    app.include_router(router)

app.mount(
    "/uploads",
    StaticFiles(directory=settings.uploads_dir, check_dir=False),
    name="uploads",
)


@app.get("/")
async def root():
    """Root endpoint - service banner."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": __version__
    }


@app.get("/health")
async def health_check():
    """Detailed health check endpoint."""
    db_health = await get_database().health_check()

    return {
        "status": "healthy" if db_health.get("status") == "healthy" else "degraded",
        "timestamp": isoformat_utc(utc_now()),
        "services": {
            "database": db_health.get("status", "unknown"),
            "rate_limiting": settings.rate_limit_enabled,
        }
    }


@app.get("/health/db")
async def db_health():
    """Database connection pool health check."""
    pool_status = get_database().get_pool_status()
    update_db_pool_metrics(pool_status)
    return {
        "timestamp": isoformat_utc(utc_now()),
        **pool_status,
    }


@app.get("/metrics")
async def metrics():
    """Prometheus exposition."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Error handlers
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "message": "Validation failed.",
            "errors": jsonable_encoder(exc.errors()),
        }
    )


@app.exception_handler(DatabaseConstraintError)
async def constraint_error_handler(request: Request, exc: DatabaseConstraintError):
    logger.warning(f"Constraint violation on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=400,
        content={"message": "The request conflicts with existing data.", "error": str(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error", "error": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "internos.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
