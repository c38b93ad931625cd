from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.database import AsyncSessionLocal, init_db, close_db
from app.core.exceptions import PortalError, error_response, status_code_for
from app.core.logging_config import logger
from app.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.api.v1.router import api_router
from app.api.v1.endpoints.health import liveness_payload
from app.db.seed_data import seed_defaults
from app.services.ad_expiry import ad_expiry_service
import app.models  # noqa: F401  Import models so metadata knows about them


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if not settings.SECRET_KEY or settings.SECRET_KEY == "CHANGE_ME":
        errors.append("SECRET_KEY is not set or using default value")

    if not settings.JWT_SECRET_KEY or settings.JWT_SECRET_KEY == "CHANGE_ME":
        errors.append("JWT_SECRET_KEY is not set or using default value")

    if not settings.REDIS_URL:
        warnings.append("REDIS_URL not set - rate limits are kept in process memory")

    if settings.PAYMENT_DEMO_ENABLED and settings.is_production():
        warnings.append("PAYMENT_DEMO_ENABLED is on in production - wallets can be funded without paying")

    if not settings.ADMIN_SETUP_TOKEN and not settings.DEFAULT_ADMIN_EMAIL:
        warnings.append("Neither ADMIN_SETUP_TOKEN nor DEFAULT_ADMIN_EMAIL is set - no way to create the first admin")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] Critical configuration validated")
    return True


async def seed_startup_defaults():
    async with AsyncSessionLocal() as session:
        result = await seed_defaults(session)
        await session.commit()
    if result["created_settings"]:
        logger.info(f"[Startup] Created default settings: {', '.join(result['created_settings'])}")
    if result["ad_settings_created"]:
        logger.info("[Startup] Created default ad settings")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info("=" * 60)

    await validate_critical_config()
    await init_db()
    await seed_startup_defaults()

    if settings.AD_SWEEP_ENABLED:
        await ad_expiry_service.start()
    else:
        logger.info("Ad expiry sweep disabled")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")

    if settings.AD_SWEEP_ENABLED:
        await ad_expiry_service.stop()

    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="University portal: timetables, exams, community, wallet-funded ads",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False  # Prevent 307 redirects that break CORS
)

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware (order matters - last added runs first)
# 1. Request logging (runs first for all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Request size limit
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE)

# 4. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(PortalError)
async def portal_exception_handler(request: Request, exc: PortalError):
    return JSONResponse(status_code=status_code_for(exc), content=error_response(exc))


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content={
            "success": False,
            "error": {"code": "CONFLICT", "message": "Resource conflicts with an existing record"}
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return liveness_payload()


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


# Include API router
app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )
