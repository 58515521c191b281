"""Tests for loading snapshots from the record store."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from hotel_admin.models.collection import StoredCollection
from hotel_admin.schemas.records import RoomStatus
from hotel_admin.services.loader import (
    UnknownCollectionError,
    load_snapshot,
    read_collection,
    save_collection,
)


class TestLoadSnapshot:
    async def test_empty_store(self, db_session: AsyncSession) -> None:
        snapshot = await load_snapshot(db_session)

        assert snapshot.rooms == ()
        assert snapshot.reservations == ()
        assert snapshot.bills == ()
        assert snapshot.clients == ()
        assert snapshot.failed == ()
        assert snapshot.fingerprint

    async def test_loads_typed_records(self, db_session: AsyncSession) -> None:
        await save_collection(db_session, "rooms", [{"id": 1, "category": "VIP", "status": "Occupée"}])
        await save_collection(db_session, "bills", [{"date": "2024-06-15", "amount": "1000"}])
        await save_collection(db_session, "reservations", [{"checkIn": "2024-06-01", "checkOut": "2024-06-03"}])
        await save_collection(db_session, "clients", [{"id": "c1"}, {"id": "c2"}])

        snapshot = await load_snapshot(db_session)

        assert snapshot.rooms[0].status is RoomStatus.OCCUPIED
        assert snapshot.bills[0].amount == 1000
        assert snapshot.reservations[0].check_out is not None
        assert len(snapshot.clients) == 2
        assert snapshot.failed == ()

    async def test_invalid_json_is_empty_and_reported(self, db_session: AsyncSession) -> None:
        db_session.add(StoredCollection(key="bills", payload="{not json"))
        await save_collection(db_session, "rooms", [{"status": "Occupée"}])
        await db_session.flush()

        snapshot = await load_snapshot(db_session)

        assert snapshot.bills == ()
        assert snapshot.failed == ("bills",)
        assert len(snapshot.rooms) == 1

    async def test_non_list_payload_is_reported(self, db_session: AsyncSession) -> None:
        db_session.add(StoredCollection(key="rooms", payload='{"id": 1}'))
        await db_session.flush()

        snapshot = await load_snapshot(db_session)

        assert snapshot.rooms == ()
        assert snapshot.failed == ("rooms",)

    async def test_non_object_records_are_skipped(self, db_session: AsyncSession) -> None:
        await save_collection(db_session, "clients", [{"id": "c1"}, "c2", 3, None, {"id": "c4"}])

        snapshot = await load_snapshot(db_session)

        assert [c.id for c in snapshot.clients] == ["c1", "c4"]
        assert snapshot.failed == ()

    async def test_fingerprint_tracks_content(self, db_session: AsyncSession) -> None:
        before = (await load_snapshot(db_session)).fingerprint
        await save_collection(db_session, "bills", [{"amount": 5}])
        after = (await load_snapshot(db_session)).fingerprint
        again = (await load_snapshot(db_session)).fingerprint

        assert before != after
        assert after == again

    async def test_unavailable_store_fails_every_collection(self) -> None:
        # No tables created, so the query itself fails.
        engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        try:
            async with AsyncSession(bind=engine) as session:
                snapshot = await load_snapshot(session)
        finally:
            await engine.dispose()

        assert snapshot.failed == ("rooms", "reservations", "bills", "clients")
        assert snapshot.fingerprint == ""
        assert snapshot.rooms == ()
        assert snapshot.reservations == ()
        assert snapshot.bills == ()
        assert snapshot.clients == ()


class TestCollections:
    async def test_save_replaces_payload(self, db_session: AsyncSession) -> None:
        await save_collection(db_session, "rooms", [{"id": "a"}])
        await save_collection(db_session, "rooms", [{"id": "b"}, {"id": "c"}])

        assert await read_collection(db_session, "rooms") == [{"id": "b"}, {"id": "c"}]

    async def test_read_missing_collection(self, db_session: AsyncSession) -> None:
        assert await read_collection(db_session, "reservations") == []

    async def test_unknown_collection(self, db_session: AsyncSession) -> None:
        with pytest.raises(UnknownCollectionError):
            await save_collection(db_session, "users", [])
        with pytest.raises(UnknownCollectionError):
            await read_collection(db_session, "users")
