"""Tests for report orchestration — cache, offload fallback, overview."""

import logging
import threading
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_admin.cache import AnalyticsCache
from hotel_admin.config import Settings
from hotel_admin.offload import AnalyticsOffloader
from hotel_admin.schemas.records import Bill, Room
from hotel_admin.services.analytics import calculate_analytics
from hotel_admin.services.loader import DashboardSnapshot, load_snapshot, save_collection
from hotel_admin.services.reporting import (
    AnalyticsService,
    reference_instant,
    report_cache_key,
)

NOW = datetime(2024, 6, 15, 12, 0)


@pytest.fixture
def app_settings() -> Settings:
    return Settings(default_total_rooms=27, analytics_cache_ttl_seconds=60)


@pytest.fixture
def service(cache: AnalyticsCache, offloader: AnalyticsOffloader, app_settings: Settings) -> AnalyticsService:
    return AnalyticsService(cache=cache, offloader=offloader, settings=app_settings)


async def _seed(db: AsyncSession) -> None:
    await save_collection(db, "rooms", [{"category": "VIP", "status": "Occupée"}, {"category": "Suite"}])
    await save_collection(db, "bills", [{"date": "2024-06-15", "amount": 1000}])
    await save_collection(db, "reservations", [{"checkIn": "2024-06-10", "checkOut": "2024-06-12"}])
    await save_collection(db, "clients", [{"id": "c1"}])


def _direct(snapshot: DashboardSnapshot):
    return calculate_analytics(
        snapshot.bills, snapshot.reservations, snapshot.rooms, now=NOW, clients=snapshot.clients
    )


def _crash() -> None:
    raise RuntimeError("worker crashed")


class _FailingOffloader(AnalyticsOffloader):
    """Runs a crashing callable in place of whatever is submitted."""

    def submit(self, task_type, fn, *args, timeout=None, **kwargs):
        return super().submit(task_type, _crash, timeout=timeout)


def test_reference_instant_truncates_to_minute() -> None:
    assert reference_instant(datetime(2024, 6, 15, 12, 34, 56, 789)) == datetime(2024, 6, 15, 12, 34)


def test_reference_instant_converts_aware_to_local() -> None:
    aware = datetime(2024, 6, 15, 12, 34, 56, tzinfo=timezone.utc)
    expected = aware.astimezone().replace(tzinfo=None, second=0)
    assert reference_instant(aware) == expected
    assert reference_instant(aware).tzinfo is None


class TestBuildReport:
    async def test_report_matches_direct_computation(self, db_session: AsyncSession, service: AnalyticsService) -> None:
        await _seed(db_session)
        report, snapshot = await service.build_report(db_session, NOW)

        direct = calculate_analytics(
            snapshot.bills, snapshot.reservations, snapshot.rooms, now=NOW, clients=snapshot.clients
        )
        assert report == direct
        assert report.revenue.daily == 1000
        assert report.occupancy.current == 50.0

    async def test_cached_report_is_reused(
        self, db_session: AsyncSession, service: AnalyticsService, cache: AnalyticsCache
    ) -> None:
        await _seed(db_session)
        first, snapshot = await service.build_report(db_session, NOW)
        second, _ = await service.build_report(db_session, NOW)

        assert second is first
        assert report_cache_key(snapshot.fingerprint, NOW) in cache

    async def test_cache_can_be_bypassed(
        self, db_session: AsyncSession, service: AnalyticsService, cache: AnalyticsCache
    ) -> None:
        await service.build_report(db_session, NOW, use_cache=False)
        assert len(cache) == 0

    async def test_changed_store_is_recomputed(self, db_session: AsyncSession, service: AnalyticsService) -> None:
        await _seed(db_session)
        first, _ = await service.build_report(db_session, NOW)
        await save_collection(db_session, "bills", [{"date": "2024-06-15", "amount": 2500}])
        second, _ = await service.build_report(db_session, NOW)

        assert first.revenue.daily == 1000
        assert second.revenue.daily == 2500

    async def test_invalidate_collection(self, db_session: AsyncSession, service: AnalyticsService) -> None:
        await service.build_report(db_session, NOW)
        assert service.invalidate_collection("bills") == 1
        assert service.invalidate_collection("bills") == 0


class TestOffload:
    async def test_offloaded_report_is_identical(self, db_session: AsyncSession, service: AnalyticsService) -> None:
        await _seed(db_session)
        offloaded, _ = await service.build_report(db_session, NOW, use_cache=False, offload=True)
        direct, _ = await service.build_report(db_session, NOW, use_cache=False, offload=False)

        assert offloaded == direct

    async def test_falls_back_when_pool_unavailable(
        self, db_session: AsyncSession, cache: AnalyticsCache, app_settings: Settings
    ) -> None:
        await _seed(db_session)
        stopped = AnalyticsOffloader(mode="thread")
        service = AnalyticsService(cache=cache, offloader=stopped, settings=app_settings)

        report, _ = await service.build_report(db_session, NOW, offload=True)

        assert report.revenue.daily == 1000

    async def test_falls_back_after_timeout(
        self, db_session: AsyncSession, cache: AnalyticsCache, app_settings: Settings, caplog
    ) -> None:
        await _seed(db_session)
        busy = AnalyticsOffloader(max_workers=1, timeout=0.05, mode="thread")
        busy.start()
        release = threading.Event()
        busy.submit("blocker", release.wait, 5.0)
        service = AnalyticsService(cache=cache, offloader=busy, settings=app_settings)

        try:
            with caplog.at_level(logging.WARNING, logger="hotel_admin.services.reporting"):
                report, snapshot = await service.build_report(db_session, NOW, use_cache=False, offload=True)
        finally:
            release.set()
            busy.shutdown()

        assert report == _direct(snapshot)
        assert "timed out" in caplog.text

    async def test_falls_back_after_task_error(
        self, db_session: AsyncSession, cache: AnalyticsCache, app_settings: Settings, caplog
    ) -> None:
        await _seed(db_session)
        failing = _FailingOffloader(mode="thread")
        failing.start()
        service = AnalyticsService(cache=cache, offloader=failing, settings=app_settings)

        try:
            with caplog.at_level(logging.WARNING, logger="hotel_admin.services.reporting"):
                report, snapshot = await service.build_report(db_session, NOW, use_cache=False, offload=True)
        finally:
            failing.shutdown()

        assert report == _direct(snapshot)
        assert "worker crashed" in caplog.text

    async def test_offload_without_pool(
        self, db_session: AsyncSession, cache: AnalyticsCache, app_settings: Settings
    ) -> None:
        service = AnalyticsService(cache=cache, offloader=None, settings=app_settings)
        report, _ = await service.build_report(db_session, NOW, offload=True)
        assert len(report.monthly_data) == 12


class TestOverview:
    def test_operational(self, service: AnalyticsService) -> None:
        snapshot = DashboardSnapshot(
            rooms=(Room.model_validate({"status": "Occupée"}), Room.model_validate({})),
            bills=(
                Bill.model_validate({"date": "2024-06-15", "amount": 1000}),
                Bill.model_validate({"date": "2024-06-14", "amount": 700}),
            ),
        )
        overview = service.build_overview(snapshot, NOW)

        assert overview.occupied_rooms == 1
        assert overview.total_rooms == 2
        assert overview.today_revenue == 1000
        assert overview.today_revenue_display == "1\u202f000\xa0FCFA"
        assert overview.total_clients == 0
        assert overview.system_status == "operational"

    def test_degraded_when_collection_failed(self, service: AnalyticsService) -> None:
        overview = service.build_overview(DashboardSnapshot(failed=("bills",)), NOW)

        assert overview.system_status == "degraded"
        assert overview.failed_collections == ["bills"]
        assert overview.total_rooms == 27

    async def test_overview_from_store(self, db_session: AsyncSession, service: AnalyticsService) -> None:
        await _seed(db_session)
        overview = service.build_overview(await load_snapshot(db_session), NOW)
        assert overview.total_clients == 1
