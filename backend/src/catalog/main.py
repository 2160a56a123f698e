import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog.api.v1 import curation, products
from catalog.core.config import settings
from catalog.core.database import async_session_maker, engine
from catalog.core.redis import close_redis
from catalog.middleware.metrics import PrometheusMiddleware, metrics_endpoint
from catalog.middleware.rate_limit import RateLimitMiddleware
from catalog.services.exceptions import (
    CatalogError,
    StoreUnavailableError,
    VisibilityConflictError,
)
from catalog.services.visibility_service import ensure_curation_slots

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting application...")

    # Slot rows serialize showcase grants; create them before the first request
    try:
        async with async_session_maker() as db:
            await ensure_curation_slots(db)
    except Exception as e:
        logger.warning(f"Failed to initialize curation slots: {e}")

    yield

    logger.info("Shutting down application...")
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Catalog Curation API",
    version="1.0.0",
    description="Product visibility rules and curated storefront sections",
    lifespan=lifespan,
)

# Prometheus Metrics Middleware (must be first to capture all requests)
app.add_middleware(PrometheusMiddleware)

# Rate Limiting Middleware (must be before CORS)
if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(
        RateLimitMiddleware,
        read_limit=settings.RATE_LIMIT_READ_PER_SECOND,
        write_limit=settings.RATE_LIMIT_WRITE_PER_SECOND,
    )

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": str(exc)},
    )


@app.exception_handler(VisibilityConflictError)
async def visibility_conflict_handler(request: Request, exc: VisibilityConflictError):
    return _error_response(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    logger.error(f"Unhandled catalog error on {request.url.path}: {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


# Curated routes first so /timeline and /featured/* are not read as product IDs
app.include_router(curation.router, prefix="/api/v1/products", tags=["curation"])
app.include_router(products.router, prefix="/api/v1/products", tags=["products"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Prometheus metrics endpoint
app.add_route("/metrics", metrics_endpoint)
