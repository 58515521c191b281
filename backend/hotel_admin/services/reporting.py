"""Report orchestration — load, cache, offload, aggregate.

Combines the record store, the TTL cache and the offload pool around the pure
aggregation functions. The report is the same whichever path produced it.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_admin.cache import AnalyticsCache
from hotel_admin.config import Settings
from hotel_admin.formatting import format_price
from hotel_admin.offload import AnalyticsOffloader, OffloadError
from hotel_admin.schemas.analytics import AdminOverview, AnalyticsReport
from hotel_admin.services.analytics import calculate_analytics, effective_total_rooms, revenue_on
from hotel_admin.services.loader import COLLECTION_MODELS, DashboardSnapshot, load_snapshot

logger = logging.getLogger(__name__)

REPORT_KEY_PREFIX = "analytics:report"
CALCULATE_ANALYTICS = "CALCULATE_ANALYTICS"


def collection_tag(key: str) -> str:
    return f"collection:{key}"


def report_cache_key(fingerprint: str, now: datetime) -> str:
    return f"{REPORT_KEY_PREFIX}:{fingerprint}:{now.isoformat()}"


def reference_instant(now: datetime | None = None) -> datetime:
    """Current local time truncated to the minute.

    Requests within the same minute share a reference instant, and so a cache
    entry. An aware ``now`` is converted to naive local time, the basis
    stored dates are parsed into.
    """
    now = now or datetime.now()
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    return now.replace(second=0, microsecond=0)


class AnalyticsService:
    """Builds analytics reports for the dashboard."""

    def __init__(
        self,
        cache: AnalyticsCache,
        offloader: AnalyticsOffloader | None,
        settings: Settings,
    ) -> None:
        self.cache = cache
        self.offloader = offloader
        self.settings = settings

    async def _compute(self, snapshot: DashboardSnapshot, now: datetime, offload: bool) -> AnalyticsReport:
        args = (snapshot.bills, snapshot.reservations, snapshot.rooms)
        kwargs = {
            "now": now,
            "clients": snapshot.clients,
            "default_total_rooms": self.settings.default_total_rooms,
        }
        if offload and self.offloader is not None:
            try:
                return await self.offloader.run(CALCULATE_ANALYTICS, calculate_analytics, *args, **kwargs)
            except OffloadError as exc:
                logger.warning("Analytics offload failed, computing inline: %s", exc)
        return calculate_analytics(*args, **kwargs)

    async def build_report(
        self,
        db: AsyncSession,
        now: datetime,
        *,
        use_cache: bool = True,
        offload: bool = False,
    ) -> tuple[AnalyticsReport, DashboardSnapshot]:
        """Load the current snapshot and return its report at ``now``."""
        snapshot = await load_snapshot(db)
        key = report_cache_key(snapshot.fingerprint, now)

        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached, snapshot

        report = await self._compute(snapshot, now, offload)
        if use_cache:
            self.cache.set(
                key,
                report,
                ttl=self.settings.analytics_cache_ttl_seconds,
                dependencies=[collection_tag(name) for name in COLLECTION_MODELS],
            )
        return report, snapshot

    def invalidate_collection(self, key: str) -> int:
        """Drop cached reports built from collection ``key``."""
        return self.cache.invalidate_dependency(collection_tag(key))

    def build_overview(self, snapshot: DashboardSnapshot, now: datetime) -> AdminOverview:
        """Headline figures for the administration landing page."""
        today_revenue = revenue_on(snapshot.bills, now.date())
        return AdminOverview(
            occupied_rooms=sum(1 for r in snapshot.rooms if r.is_occupied),
            total_rooms=effective_total_rooms(snapshot.rooms, self.settings.default_total_rooms),
            today_revenue=today_revenue,
            today_revenue_display=format_price(today_revenue, self.settings.currency_label),
            total_clients=len(snapshot.clients),
            system_status="degraded" if snapshot.failed else "operational",
            failed_collections=list(snapshot.failed),
        )
