import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from src.config.logging_config import RequestLoggingMiddleware, configure_logging
from src.config.settings import settings
from src.database import client as db_client
from src.features.auth.router import router as auth_router
from src.features.user.router import router as user_router
from src.shared.middlewares.docs_middleware import admin_docs_middleware
from src.shared.rate_limit import limiter, rate_limit_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Handle startup and shutdown events."""
    # Startup
    configure_logging(settings.log_level, settings.log_format)
    await db_client.init_db()
    logger.info(f"{settings.app_name} {settings.app_version} started ({settings.environment})")
    yield
    # Shutdown
    await db_client.close_db()


# Admin-only API documentation
# Routes are protected by admin_docs_middleware
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Add rate limiting middleware
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_middleware(SlowAPIMiddleware)

# Add admin-only documentation middleware
app.middleware("http")(admin_docs_middleware)

# Request logging (outermost, so it sees every response)
app.add_middleware(RequestLoggingMiddleware)

# Router Registration
routers: list[APIRouter] = [
    auth_router,
    user_router,
]

for router in routers:
    app.include_router(router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"message": settings.app_name, "status": "running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
