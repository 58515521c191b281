"""Pydantic v2 schemas for records read from the local store.

The dashboard writes loosely typed JSON: dates may be missing or malformed,
amounts may be strings, and keys may be camelCase. Validation here is
lenient: a bad field falls back to its documented default, and the record
still takes part in the aggregations it is valid for.
"""

import logging
import math
import re
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_OCCUPIED_LABELS = {"occupée", "occupee", "occupied"}


class RoomCategory(str, Enum):
    """Closed set of room categories, in display order."""

    STANDARD = "Standard"
    CONFORT = "Confort"
    VIP = "VIP"
    SUITE = "Suite"


class RoomStatus(str, Enum):
    OCCUPIED = "occupied"
    FREE = "free"


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------


def parse_datetime(value: Any) -> datetime | None:
    """Parse a stored date value into a naive datetime, or ``None``.

    Accepts ``datetime``/``date`` objects, ISO-8601 strings (date-only or full
    timestamps, ``Z`` suffix included), epoch milliseconds, and timestamp
    mappings with a ``seconds`` key. Aware values and epoch values are
    converted to local time, the same basis as the reference instant.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            parsed = datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, dict) and isinstance(value.get("seconds"), (int, float)):
        return parse_datetime(value["seconds"] * 1000)
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def coerce_amount(value: Any) -> int:
    """Coerce a stored amount to a non-negative integer.

    Strings are read by their leading integer (``"1200 FCFA"`` → 1200), floats
    are truncated, and anything else (negative results included) is 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        amount = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return 0
        amount = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match is None:
            return 0
        amount = int(match.group(1))
    else:
        return 0
    return amount if amount > 0 else 0


def _optional_str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


# ---------------------------------------------------------------------------
# Record schemas
# ---------------------------------------------------------------------------


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str | None:
        return _optional_str(value)


class Room(_Record):
    """A hotel room as stored by the dashboard."""

    number: str | None = None
    category: RoomCategory = RoomCategory.STANDARD
    status: RoomStatus = RoomStatus.FREE
    price: int = 0

    @field_validator("number", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> str | None:
        return _optional_str(value)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> RoomCategory:
        if isinstance(value, RoomCategory):
            return value
        if isinstance(value, str):
            for category in RoomCategory:
                if category.value.lower() == value.strip().lower():
                    return category
        if value not in (None, ""):
            logger.debug("Unknown room category %r, using Standard", value)
        return RoomCategory.STANDARD

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> RoomStatus:
        if isinstance(value, RoomStatus):
            return value
        if isinstance(value, str) and value.strip().lower() in _OCCUPIED_LABELS:
            return RoomStatus.OCCUPIED
        return RoomStatus.FREE

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> int:
        return coerce_amount(value)

    @property
    def is_occupied(self) -> bool:
        return self.status is RoomStatus.OCCUPIED


class Reservation(_Record):
    """A reservation linking a client to check-in/check-out dates."""

    client_id: str | None = Field(None, validation_alias=AliasChoices("client_id", "clientId"))
    check_in: datetime | None = Field(None, validation_alias=AliasChoices("check_in", "checkIn"))
    check_out: datetime | None = Field(None, validation_alias=AliasChoices("check_out", "checkOut"))

    @field_validator("client_id", mode="before")
    @classmethod
    def _coerce_client_id(cls, value: Any) -> str | None:
        return _optional_str(value)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _coerce_dates(cls, value: Any) -> datetime | None:
        return parse_datetime(value)


class Bill(_Record):
    """A bill issued on a given date."""

    date: datetime | None = None
    amount: int = 0

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> datetime | None:
        return parse_datetime(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> int:
        return coerce_amount(value)


class Client(_Record):
    """A hotel client."""

    name: str | None = None
    created_at: datetime | None = Field(None, validation_alias=AliasChoices("created_at", "createdAt"))

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str | None:
        return _optional_str(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, value: Any) -> datetime | None:
        return parse_datetime(value)
