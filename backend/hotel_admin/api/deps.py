"""Shared API dependencies — single import point for all routers.

Re-exports the database session and resolves the per-application cache and
offload pool from ``app.state`` so that router modules can import everything
they need from one place::

    from hotel_admin.api.deps import get_db, get_analytics_service
"""

from fastapi import Depends, Request

from hotel_admin.cache import AnalyticsCache
from hotel_admin.config import Settings, settings
from hotel_admin.database import get_db
from hotel_admin.offload import AnalyticsOffloader
from hotel_admin.services.reporting import AnalyticsService


def get_settings() -> Settings:
    return settings


def get_cache(request: Request) -> AnalyticsCache:
    """Return the cache created at application startup."""
    return request.app.state.cache


def get_offloader(request: Request) -> AnalyticsOffloader | None:
    """Return the offload pool, or ``None`` when offloading is disabled."""
    return getattr(request.app.state, "offloader", None)


def get_analytics_service(
    cache: AnalyticsCache = Depends(get_cache),
    offloader: AnalyticsOffloader | None = Depends(get_offloader),
    app_settings: Settings = Depends(get_settings),
) -> AnalyticsService:
    return AnalyticsService(cache=cache, offloader=offloader, settings=app_settings)


__all__ = [
    "get_db",
    "get_settings",
    "get_cache",
    "get_offloader",
    "get_analytics_service",
]
