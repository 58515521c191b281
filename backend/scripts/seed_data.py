"""Seed the record store with sample hotel data.

Writes 27 rooms across the four categories, a year of reservations and bills,
and the matching clients. Uses a fixed random seed so repeated runs produce
the same collections (dates stay relative to today).

Run from the backend directory:
    python -m scripts.seed_data
"""

import asyncio
import random
import sys
from datetime import date, timedelta
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from hotel_admin import models  # noqa: E402,F401
from hotel_admin.database import Base, async_session_factory, engine  # noqa: E402
from hotel_admin.services.loader import save_collection  # noqa: E402

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

# (category, room count, nightly price in FCFA)
ROOM_TYPES = [
    ("Standard", 12, 15000),
    ("Confort", 8, 25000),
    ("VIP", 4, 45000),
    ("Suite", 3, 75000),
]

CLIENT_NAMES = [
    "Awa Ndiaye", "Jean-Paul Mbarga", "Fatou Diallo", "Serge Atangana",
    "Mireille Ngo", "Ibrahim Moussa", "Chantal Essomba", "Paul Ekambi",
    "Aminata Touré", "Éric Fotso", "Nadège Kamga", "Olivier Tchakounté",
]

RESERVATION_COUNT = 140
SEED = 20240101


def _build_rooms(rng: random.Random) -> list[dict]:
    rooms = []
    number = 101
    for category, count, price in ROOM_TYPES:
        for _ in range(count):
            rooms.append({
                "id": f"room-{number}",
                "number": str(number),
                "category": category,
                "status": "Occupée" if rng.random() < 0.55 else "Libre",
                "price": price,
            })
            number += 1
    return rooms


def _build_clients() -> list[dict]:
    today = date.today()
    return [
        {"id": f"client-{i + 1}", "name": name, "createdAt": (today - timedelta(days=30 * i)).isoformat()}
        for i, name in enumerate(CLIENT_NAMES)
    ]


def _build_reservations_and_bills(
    rng: random.Random,
    rooms: list[dict],
    clients: list[dict],
) -> tuple[list[dict], list[dict]]:
    today = date.today()
    reservations: list[dict] = []
    bills: list[dict] = []
    for i in range(RESERVATION_COUNT):
        room = rng.choice(rooms)
        client = rng.choice(clients)
        check_in = today - timedelta(days=rng.randint(0, 360))
        nights = rng.randint(1, 7)
        check_out = check_in + timedelta(days=nights)
        reservations.append({
            "id": f"res-{i + 1}",
            "clientId": client["id"],
            "roomId": room["id"],
            "checkIn": check_in.isoformat(),
            "checkOut": check_out.isoformat(),
        })
        bills.append({
            "id": f"bill-{i + 1}",
            "reservationId": f"res-{i + 1}",
            "date": min(check_out, today).isoformat(),
            # Amounts are stored as strings by the dashboard's billing form.
            "amount": str(room["price"] * nights),
        })
    return reservations, bills


async def seed() -> None:
    """Replace every collection in the record store with sample data."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    rng = random.Random(SEED)
    rooms = _build_rooms(rng)
    clients = _build_clients()
    reservations, bills = _build_reservations_and_bills(rng, rooms, clients)

    async with async_session_factory() as session:
        await save_collection(session, "rooms", rooms)
        await save_collection(session, "clients", clients)
        await save_collection(session, "reservations", reservations)
        await save_collection(session, "bills", bills)
        await session.commit()

    occupied = sum(1 for r in rooms if r["status"] == "Occupée")
    print("=" * 60)
    print("Seed Summary")
    print("=" * 60)
    print(f"   Rooms:         {len(rooms)} ({occupied} occupied)")
    print(f"   Clients:       {len(clients)}")
    print(f"   Reservations:  {len(reservations)}")
    print(f"   Bills:         {len(bills)}")
    print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
