"""Analytics aggregation — revenue, occupancy, client and room statistics.

Everything in this module is a pure function of its inputs and the reference
instant ``now``: no I/O, no clock reads, no shared state. That makes the
aggregation safe to memoize and to ship to a worker process.
"""

import calendar
import math
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from hotel_admin.schemas.analytics import (
    AnalyticsReport,
    CategoryPerformance,
    ClientSummary,
    MonthlyEntry,
    OccupancySummary,
    RevenueSummary,
    RoomSummary,
)
from hotel_admin.schemas.records import Bill, Client, Reservation, Room, RoomCategory

DEFAULT_TOTAL_ROOMS = 27
DEFAULT_AVG_STAY = 2.5
DEFAULT_MOST_BOOKED = RoomCategory.STANDARD.value
DEFAULT_LEAST_BOOKED = RoomCategory.SUITE.value
TREND_MONTHS = 12
NEW_CLIENT_WINDOW = timedelta(days=30)
WEEK_WINDOW = timedelta(days=7)
ESTIMATE_DAYS_PER_MONTH = 30

# Short month names as rendered by the fr-FR locale.
MONTH_LABELS = (
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sum_amounts(bills: Iterable[Bill], predicate: Callable[[datetime], bool]) -> int:
    """Sum amounts of dated bills whose date satisfies ``predicate``."""
    return sum(b.amount for b in bills if b.date is not None and predicate(b.date))


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def _round_half_up(value: float, places: str = "0.1") -> float:
    return float(Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP))


def effective_total_rooms(rooms: Sequence[Room], default_total_rooms: int = DEFAULT_TOTAL_ROOMS) -> int:
    """Room count used as the occupancy denominator.

    An empty room collection means the inventory was never loaded, so the
    configured hotel size is used instead.
    """
    return len(rooms) or default_total_rooms


def revenue_on(bills: Iterable[Bill], day: date) -> int:
    """Total billed on a single calendar day."""
    return _sum_amounts(bills, lambda d: d.date() == day)


def stay_nights(reservation: Reservation) -> int | None:
    """Nights billed for a reservation, at least 1; ``None`` without both dates."""
    if reservation.check_in is None or reservation.check_out is None:
        return None
    seconds = (reservation.check_out - reservation.check_in).total_seconds()
    return max(1, math.ceil(seconds / 86400))


# ---------------------------------------------------------------------------
# Report sections
# ---------------------------------------------------------------------------


def _revenue_summary(bills: Sequence[Bill], now: datetime) -> RevenueSummary:
    week_ago = now - WEEK_WINDOW
    return RevenueSummary(
        daily=revenue_on(bills, now.date()),
        weekly=_sum_amounts(bills, lambda d: d >= week_ago),
        monthly=_sum_amounts(bills, lambda d: d.year == now.year and d.month == now.month),
        yearly=_sum_amounts(bills, lambda d: d.year == now.year),
    )


def _room_summary(rooms: Sequence[Room], reservations: Sequence[Reservation]) -> RoomSummary:
    # category -> occupied count, in first-seen order
    occupied_by_category: dict[str, int] = {}
    for room in rooms:
        name = room.category.value
        occupied_by_category.setdefault(name, 0)
        if room.is_occupied:
            occupied_by_category[name] += 1

    most_booked = least_booked = None
    for name, occupied in occupied_by_category.items():
        if most_booked is None or occupied > occupied_by_category[most_booked]:
            most_booked = name
        if least_booked is None or occupied < occupied_by_category[least_booked]:
            least_booked = name

    nights = [n for n in (stay_nights(r) for r in reservations) if n is not None]
    avg_stay = sum(nights) / len(nights) if nights else DEFAULT_AVG_STAY

    return RoomSummary(
        most_booked=most_booked or DEFAULT_MOST_BOOKED,
        least_booked=least_booked or DEFAULT_LEAST_BOOKED,
        avg_stay=_round_half_up(avg_stay),
    )


def _monthly_series(
    bills: Sequence[Bill],
    reservations: Sequence[Reservation],
    now: datetime,
    total_rooms: int,
) -> list[MonthlyEntry]:
    series: list[MonthlyEntry] = []
    for offset in range(TREND_MONTHS - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        start, end = _month_bounds(year, month)

        revenue = _sum_amounts(bills, lambda d: start <= d.date() <= end)
        bookings = sum(
            1 for r in reservations if r.check_in is not None and start <= r.check_in.date() <= end
        )
        if bookings > 0 and total_rooms > 0:
            occupancy = min(bookings / total_rooms * 100, 100.0)
        else:
            occupancy = 0.0

        series.append(
            MonthlyEntry(
                month=MONTH_LABELS[month - 1],
                period_start=start,
                revenue=revenue,
                bookings=bookings,
                occupancy=occupancy,
            )
        )
    return series


def _client_summary(
    clients: Sequence[Client],
    reservations: Sequence[Reservation],
    now: datetime,
) -> ClientSummary:
    window_start = now - NEW_CLIENT_WINDOW
    new = sum(1 for r in reservations if r.check_in is not None and r.check_in >= window_start)
    # Counts reservations, not distinct clients.
    return ClientSummary(total=len(clients), new=new, returning=len(reservations) - new)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def calculate_analytics(
    bills: Sequence[Bill],
    reservations: Sequence[Reservation],
    rooms: Sequence[Room],
    *,
    now: datetime,
    clients: Sequence[Client] = (),
    default_total_rooms: int = DEFAULT_TOTAL_ROOMS,
) -> AnalyticsReport:
    """Aggregate bills, reservations and rooms into an ``AnalyticsReport``.

    Args:
        bills: Bills to roll up into revenue buckets and the monthly series.
        reservations: Reservations used for stay length, bookings and client counts.
        rooms: Current room inventory with occupancy status.
        now: Reference instant (naive local time); trailing windows start from it.
        clients: Client records, only counted.
        default_total_rooms: Occupancy denominator when ``rooms`` is empty.

    Returns:
        A new report; identical inputs and ``now`` always give an equal report.
    """
    total_rooms = effective_total_rooms(rooms, default_total_rooms)
    occupied_rooms = sum(1 for r in rooms if r.is_occupied)
    current = occupied_rooms / total_rooms * 100 if total_rooms > 0 else 0.0

    monthly_data = _monthly_series(bills, reservations, now, total_rooms)
    average = sum(m.occupancy for m in monthly_data) / len(monthly_data)
    # A month with no bookings has no estimate; compare against current instead.
    previous = monthly_data[-2].occupancy if len(monthly_data) >= 2 else 0.0
    trend = current - (previous or current)

    return AnalyticsReport(
        generated_at=now,
        revenue=_revenue_summary(bills, now),
        occupancy=OccupancySummary(current=current, average=average, trend=trend),
        clients=_client_summary(clients, reservations, now),
        rooms=_room_summary(rooms, reservations),
        monthly_data=monthly_data,
    )


def category_performance(rooms: Sequence[Room]) -> list[CategoryPerformance]:
    """Per-category occupancy and estimated monthly revenue.

    The revenue estimate assumes every occupied room stays occupied for a
    30-day month at its category's average price.
    """
    results: list[CategoryPerformance] = []
    for category in RoomCategory:
        in_category = [r for r in rooms if r.category is category]
        total = len(in_category)
        occupied = sum(1 for r in in_category if r.is_occupied)
        average_price = sum(r.price for r in in_category) / (total or 1)

        results.append(
            CategoryPerformance(
                category=category,
                occupied=occupied,
                total=total,
                occupancy_rate=occupied / total * 100 if total else 0.0,
                average_price=average_price,
                estimated_revenue=occupied * average_price * ESTIMATE_DAYS_PER_MONTH,
            )
        )
    return results
