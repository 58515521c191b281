"""Hotel Admin Dashboard — FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hotel_admin.api.v1.admin import router as admin_router
from hotel_admin.api.v1.analytics import router as analytics_router
from hotel_admin.cache import AnalyticsCache
from hotel_admin.config import settings
from hotel_admin.offload import AnalyticsOffloader

# Configure root logger so all hotel_admin.* loggers output to stderr.
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    from hotel_admin import models  # noqa: F401
    from hotel_admin.database import Base, engine

    # Startup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.state.cache = AnalyticsCache(default_ttl=settings.cache_default_ttl_seconds)
    app.state.offloader = None
    if settings.offload_enabled:
        offloader = AnalyticsOffloader(
            max_workers=settings.offload_max_workers,
            timeout=settings.offload_timeout_seconds,
            mode=settings.offload_mode,
        )
        offloader.start()
        app.state.offloader = offloader

    yield

    # Shutdown: stop workers and dispose engine connections
    if app.state.offloader is not None:
        app.state.offloader.shutdown()
    app.state.cache.clear()
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Administrative dashboard back end: analytics and overview for hotel managers.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(analytics_router)
app.include_router(admin_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
