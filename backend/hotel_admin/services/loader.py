"""Record store access — load typed snapshots, replace raw collections.

Each collection (``rooms``, ``reservations``, ``bills``, ``clients``) is stored
as one JSON document. Loading never raises on bad content: a missing or
unparseable collection becomes empty and is reported in
``DashboardSnapshot.failed``.
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_admin.models.collection import StoredCollection
from hotel_admin.schemas.records import Bill, Client, Reservation, Room

logger = logging.getLogger(__name__)

COLLECTION_MODELS: dict[str, type[BaseModel]] = {
    "rooms": Room,
    "reservations": Reservation,
    "bills": Bill,
    "clients": Client,
}


class UnknownCollectionError(KeyError):
    """Raised when a collection name is not one of the known record types."""


@dataclass(frozen=True)
class DashboardSnapshot:
    """Typed records read from the store in a single load."""

    rooms: tuple[Room, ...] = ()
    reservations: tuple[Reservation, ...] = ()
    bills: tuple[Bill, ...] = ()
    clients: tuple[Client, ...] = ()
    failed: tuple[str, ...] = ()
    fingerprint: str = field(default="")


def _check_key(key: str) -> None:
    if key not in COLLECTION_MODELS:
        raise UnknownCollectionError(key)


def _parse_payload(key: str, payload: str | None) -> list[Any] | None:
    """Decode a stored payload; ``None`` means the collection is unusable."""
    if payload is None:
        return []
    try:
        data = json.loads(payload)
    except (TypeError, ValueError):
        logger.warning("Collection %r holds invalid JSON, treating as empty", key)
        return None
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning("Collection %r is a %s, expected a list", key, type(data).__name__)
        return None
    return data


def _validate_records(key: str, raw: list[Any]) -> tuple[BaseModel, ...]:
    model = COLLECTION_MODELS[key]
    records: list[BaseModel] = []
    skipped = 0
    for item in raw:
        if not isinstance(item, dict):
            skipped += 1
            continue
        try:
            records.append(model.model_validate(item))
        except ValidationError:
            skipped += 1
    if skipped:
        logger.debug("Skipped %d malformed record(s) in %r", skipped, key)
    return tuple(records)


async def _fetch_payloads(db: AsyncSession) -> dict[str, str]:
    result = await db.execute(
        select(StoredCollection).where(StoredCollection.key.in_(list(COLLECTION_MODELS)))
    )
    return {row.key: row.payload for row in result.scalars().all()}


async def load_snapshot(db: AsyncSession) -> DashboardSnapshot:
    """Load and validate all collections into a ``DashboardSnapshot``."""
    try:
        payloads = await _fetch_payloads(db)
    except Exception:
        logger.exception("Record store unavailable, using empty collections")
        return DashboardSnapshot(failed=tuple(COLLECTION_MODELS))

    digest = hashlib.sha256()
    loaded: dict[str, tuple[BaseModel, ...]] = {}
    failed: list[str] = []
    for key in COLLECTION_MODELS:
        payload = payloads.get(key)
        digest.update(f"{key}\0{payload or ''}\0".encode())
        raw = _parse_payload(key, payload)
        if raw is None:
            failed.append(key)
            raw = []
        loaded[key] = _validate_records(key, raw)

    return DashboardSnapshot(
        rooms=loaded["rooms"],  # type: ignore[arg-type]
        reservations=loaded["reservations"],  # type: ignore[arg-type]
        bills=loaded["bills"],  # type: ignore[arg-type]
        clients=loaded["clients"],  # type: ignore[arg-type]
        failed=tuple(failed),
        fingerprint=digest.hexdigest(),
    )


async def read_collection(db: AsyncSession, key: str) -> list[Any]:
    """Return the raw records of a collection, empty if missing or unparseable."""
    _check_key(key)
    row = await db.get(StoredCollection, key)
    raw = _parse_payload(key, row.payload if row is not None else None)
    return raw or []


async def save_collection(db: AsyncSession, key: str, records: list[Any]) -> StoredCollection:
    """Replace the stored payload of a collection."""
    _check_key(key)
    payload = json.dumps(records, ensure_ascii=False, default=str)
    row = await db.get(StoredCollection, key)
    if row is None:
        row = StoredCollection(key=key, payload=payload)
        db.add(row)
    else:
        row.payload = payload
    await db.flush()
    logger.info("Saved %d record(s) to collection %r", len(records), key)
    return row
