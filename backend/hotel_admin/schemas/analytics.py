"""Pydantic v2 schemas for analytics and administration endpoints."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from hotel_admin.schemas.records import RoomCategory


class ReportPeriod(str, Enum):
    """Revenue bucket foregrounded by the dashboard."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class RevenueSummary(_Frozen):
    daily: int
    weekly: int
    monthly: int
    yearly: int

    def for_period(self, period: ReportPeriod) -> int:
        """Return the revenue bucket matching ``period``."""
        return getattr(self, period.value)


class OccupancySummary(_Frozen):
    current: float  # percentage 0–100
    average: float
    trend: float


class ClientSummary(_Frozen):
    """Client counts.

    ``returning`` is total reservations minus new reservations, which counts
    reservations rather than distinct clients.
    """

    total: int
    new: int
    returning: int


class RoomSummary(_Frozen):
    most_booked: str
    least_booked: str
    avg_stay: float


class MonthlyEntry(_Frozen):
    """One calendar month of the trailing 12-month series."""

    month: str
    period_start: date
    revenue: int
    bookings: int
    occupancy: float


class AnalyticsReport(_Frozen):
    """Derived analytics for a snapshot at a reference instant."""

    generated_at: datetime
    revenue: RevenueSummary
    occupancy: OccupancySummary
    clients: ClientSummary
    rooms: RoomSummary
    monthly_data: list[MonthlyEntry]


class AnalyticsReportResponse(BaseModel):
    """Report plus the revenue bucket selected by the period selector."""

    period: ReportPeriod
    period_revenue: int
    period_revenue_display: str
    failed_collections: list[str]
    report: AnalyticsReport


class CategoryPerformance(_Frozen):
    """Occupancy and estimated monthly revenue for one room category."""

    category: RoomCategory
    occupied: int
    total: int
    occupancy_rate: float
    average_price: float
    estimated_revenue: float


class AdminOverview(BaseModel):
    """Headline figures for the administration landing page."""

    occupied_rooms: int
    total_rooms: int
    today_revenue: int
    today_revenue_display: str
    total_clients: int
    system_status: str  # operational, degraded
    failed_collections: list[str]


class CacheStatsResponse(BaseModel):
    hits: int
    misses: int
    entries: int
    hit_rate: float


class InvalidationResponse(BaseModel):
    removed: int


class CollectionResponse(BaseModel):
    key: str
    records: list
    total: int
