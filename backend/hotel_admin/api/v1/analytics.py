"""Analytics API router — revenue, occupancy and category performance."""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_admin.api.deps import get_analytics_service, get_cache, get_db
from hotel_admin.cache import AnalyticsCache
from hotel_admin.formatting import format_price
from hotel_admin.schemas.analytics import (
    AnalyticsReportResponse,
    CacheStatsResponse,
    CategoryPerformance,
    InvalidationResponse,
    ReportPeriod,
)
from hotel_admin.services.analytics import category_performance
from hotel_admin.services.loader import load_snapshot
from hotel_admin.services.reporting import REPORT_KEY_PREFIX, AnalyticsService, reference_instant

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


@router.get("/report", response_model=AnalyticsReportResponse)
async def get_report(
    period: ReportPeriod = Query(ReportPeriod.MONTHLY, description="Revenue bucket to foreground"),
    offload: bool = Query(False, description="Compute in the background worker pool"),
    use_cache: bool = Query(True, description="Serve a cached report when available"),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsReportResponse:
    """Return the analytics report as of the current minute.

    All revenue buckets are always computed; ``period`` only selects which one
    is returned as ``period_revenue``.
    """
    report, snapshot = await service.build_report(
        db, reference_instant(), use_cache=use_cache, offload=offload
    )
    period_revenue = report.revenue.for_period(period)
    return AnalyticsReportResponse(
        period=period,
        period_revenue=period_revenue,
        period_revenue_display=format_price(period_revenue, service.settings.currency_label),
        failed_collections=list(snapshot.failed),
        report=report,
    )


@router.get("/categories", response_model=list[CategoryPerformance])
async def get_category_performance(
    db: AsyncSession = Depends(get_db),
) -> list[CategoryPerformance]:
    """Occupancy and estimated monthly revenue for each room category."""
    snapshot = await load_snapshot(db)
    return category_performance(snapshot.rooms)


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(cache: AnalyticsCache = Depends(get_cache)) -> CacheStatsResponse:
    stats = cache.stats()
    return CacheStatsResponse(
        hits=stats.hits,
        misses=stats.misses,
        entries=stats.entries,
        hit_rate=stats.hit_rate,
    )


@router.delete("/cache", response_model=InvalidationResponse)
async def invalidate_cache(
    pattern: str = Query(f"^{REPORT_KEY_PREFIX}:", description="Regular expression matched against cache keys"),
    cache: AnalyticsCache = Depends(get_cache),
) -> InvalidationResponse:
    """Drop cached entries whose key matches ``pattern``."""
    try:
        removed = cache.invalidate(pattern)
    except re.error as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid pattern: {exc}",
        ) from exc
    return InvalidationResponse(removed=removed)
