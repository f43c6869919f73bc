"""FastAPI application for the Bolão backend."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import get_settings
from app.dashboard.admin_routes import router as admin_routes_router
from app.database import close_db, init_db
from app.errors import ApiError, api_error_handler, validation_error_handler
from app.logos.routes import router as logos_router
from app.routes.api import router as api_router
from app.routes.core import router as core_router
from app.routes.standings import router as standings_router
from app.security import limiter
from app.telemetry.sentry import init_sentry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Sentry for error tracking (before FastAPI app creation)
# Only activates if SENTRY_DSN is set in environment
init_sentry()

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Bolão API...")
    await init_db()
    if not settings.RAPIDAPI_KEY:
        logger.warning("RAPIDAPI_KEY not set: admin imports disabled, standings served from mock data")
    if not settings.SUPABASE_JWT_SECRET:
        logger.warning("SUPABASE_JWT_SECRET not set: every authenticated request will be rejected")

    yield

    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title="Bolão API",
    description="Prediction pool for Brazilian football tournaments",
    version="1.0.0",
    lifespan=lifespan,
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

# Include routers
app.include_router(core_router)
app.include_router(api_router)
app.include_router(standings_router)
app.include_router(logos_router)
app.include_router(admin_routes_router)
