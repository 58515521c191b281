"""Administration API router — overview figures and record collections."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_admin.api.deps import get_analytics_service, get_db
from hotel_admin.schemas.analytics import AdminOverview, CollectionResponse
from hotel_admin.services.loader import (
    UnknownCollectionError,
    load_snapshot,
    read_collection,
    save_collection,
)
from hotel_admin.services.reporting import AnalyticsService, reference_instant

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


def _not_found(key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Unknown collection '{key}'",
    )


@router.get("/overview", response_model=AdminOverview)
async def get_overview(
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AdminOverview:
    """Occupied rooms, today's revenue, client total and system status."""
    snapshot = await load_snapshot(db)
    return service.build_overview(snapshot, reference_instant())


@router.get("/collections/{key}", response_model=CollectionResponse)
async def get_collection(
    key: str,
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    """Return the raw records stored under ``key``."""
    try:
        records = await read_collection(db, key)
    except UnknownCollectionError as exc:
        raise _not_found(key) from exc
    return CollectionResponse(key=key, records=records, total=len(records))


@router.put("/collections/{key}", response_model=CollectionResponse)
async def replace_collection(
    key: str,
    records: list[Any] = Body(..., description="Full replacement list of records"),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> CollectionResponse:
    """Replace a collection and drop cached reports that depended on it."""
    try:
        await save_collection(db, key, records)
    except UnknownCollectionError as exc:
        raise _not_found(key) from exc
    service.invalidate_collection(key)
    return CollectionResponse(key=key, records=records, total=len(records))
