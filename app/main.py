"""
Main FastAPI application
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time
from prometheus_client import make_asgi_app, Counter, Histogram
import uuid

from app.config import settings
from app.core.database import init_db, close_db
from app.core.exceptions import VenuelyException
from app.core.redis import init_redis, close_redis
from app.core.logging import setup_logging
from app.api.v1.api import api_router
from app.schemas.response import ErrorDetail, ErrorResponse

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Prometheus metrics; the module can be imported more than once under test
try:
    REQUEST_COUNT = Counter(
        "app_requests_total",
        "Total requests",
        ["method", "endpoint", "status"]
    )
    REQUEST_DURATION = Histogram(
        "app_request_duration_seconds",
        "Request duration",
        ["method", "endpoint"]
    )
except ValueError:
    from prometheus_client import REGISTRY
    REQUEST_COUNT = REGISTRY._names_to_collectors["app_requests_total"]
    REQUEST_DURATION = REGISTRY._names_to_collectors["app_request_duration_seconds"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await init_db()

    # Redis only backs rate limiting and the geocode cache, both fail open
    try:
        await init_redis()
    except Exception as e:
        logger.warning(f"Starting without Redis: {e}")

    yield

    logger.info("Shutting down application")
    await close_db()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    description="Venue search and booking platform",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def track_requests(request: Request, call_next):
    """
    Track request metrics and add request ID
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    # Route template keeps label cardinality bounded
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(duration)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(duration)

    return response


# Exception handlers
@app.exception_handler(VenuelyException)
async def venuely_exception_handler(request: Request, exc: VenuelyException):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")

    body = ErrorResponse(
        error=ErrorDetail(code=exc.code, message=exc.message, details=exc.details or {})
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    body = ErrorResponse(
        error=ErrorDetail(code="NOT_FOUND", message="The requested resource was not found")
    )
    return JSONResponse(status_code=404, content=body.model_dump(mode="json"))


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc):
    logger.error(f"Internal server error: {exc}", exc_info=True)
    body = ErrorResponse(
        error=ErrorDetail(code="INTERNAL_ERROR", message="An internal server error occurred")
    )
    return JSONResponse(status_code=500, content=body.model_dump(mode="json"))


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.APP_ENV,
        "api_docs": "/docs" if settings.DEBUG else None
    }


app.include_router(api_router, prefix=settings.API_PREFIX)

# Mount Prometheus metrics endpoint
if settings.PROMETHEUS_ENABLED:
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
