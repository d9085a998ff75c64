"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 1 manager, 3 valet drivers, 6 riders (each rider with one vehicle)
  - 2 parking locations run by the manager
  - 8 sample bookings covering every lifecycle status
  - payments for the completed bookings
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import text

from src.config import settings
from src.domain.calendar import utcnow
from src.domain.enums import BookingStatus, UserRole
from src.infrastructure.database import Database
from src.infrastructure.repositories import (
    BookingRepository,
    LocationRepository,
    PaymentRepository,
    UserRepository,
)


MANAGER = {"name": "Neha Kapoor", "phone": "+919800000001"}

DRIVERS = [
    {"name": "Ravi Yadav", "phone": "+919800000011"},
    {"name": "Sunil Das", "phone": "+919800000012"},
    {"name": "Imran Shaikh", "phone": "+919800000013"},
]

RIDERS = [
    {"name": "Aarav Sharma", "phone": "+919800000101", "vehicle": ("MH01AB1234", "SEDAN")},
    {"name": "Priya Patel", "phone": "+919800000102", "vehicle": ("MH02CD5678", "SUV")},
    {"name": "Rohan Mehta", "phone": "+919800000103", "vehicle": ("MH03EF9012", "HATCHBACK")},
    {"name": "Sneha Gupta", "phone": "+919800000104", "vehicle": ("MH04GH3456", "SEDAN")},
    {"name": "Vikram Singh", "phone": "+919800000105", "vehicle": ("MH05IJ7890", "SUV")},
    {"name": "Ananya Reddy", "phone": "+919800000106", "vehicle": ("MH06KL2345", "SEDAN")},
]

LOCATIONS = [
    {"name": "Phoenix Mall Valet", "address": "Lower Parel, Mumbai"},
    {"name": "Airport T2 Valet", "address": "Andheri East, Mumbai"},
]

# (rider index, location index, driver index or None, status, slot, amount)
BOOKINGS = [
    (0, 0, None, BookingStatus.REQUESTED, None, None),
    (1, 0, 0, BookingStatus.ACTIVE, None, None),
    (2, 0, 1, BookingStatus.PARKED, "A-12", None),
    (3, 1, 2, BookingStatus.RETRIEVING, "B-03", None),
    (4, 1, 0, BookingStatus.COMPLETED, "B-07", Decimal("250.00")),
    (5, 0, 1, BookingStatus.COMPLETED, "A-02", Decimal("180.00")),
    (0, 1, 2, BookingStatus.COMPLETED, "B-11", Decimal("320.00")),
    (1, 1, None, BookingStatus.REQUESTED, None, None),
]


async def seed(database: Database):
    async with database.transaction() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        users = UserRepository(session)
        locations = LocationRepository(session)
        bookings = BookingRepository(session)
        payments = PaymentRepository(session)

        # ── Users ─────────────────────────────────────────────────────
        manager = await users.create(role=UserRole.MANAGER, **MANAGER)
        driver_models = [
            await users.create(role=UserRole.DRIVER, **d) for d in DRIVERS
        ]
        rider_models = []
        for r in RIDERS:
            rider = await users.create(name=r["name"], phone=r["phone"])
            number, vehicle_type = r["vehicle"]
            await users.add_vehicle(
                user_id=rider.id, vehicle_number=number, vehicle_type=vehicle_type
            )
            rider_models.append(rider)

        # ── Locations ─────────────────────────────────────────────────
        location_models = [
            await locations.create(manager_id=manager.id, **loc) for loc in LOCATIONS
        ]

        # ── Bookings & payments ───────────────────────────────────────
        now = utcnow()
        for i, (rider, loc, driver, status, slot, amount) in enumerate(BOOKINGS):
            parked = status in (
                BookingStatus.PARKED,
                BookingStatus.RETRIEVING,
                BookingStatus.COMPLETED,
            )
            booking = await bookings.create_booking(
                user_id=rider_models[rider].id,
                location_id=location_models[loc].id,
                driver_id=driver_models[driver].id if driver is not None else None,
                status=status,
                slot=slot,
                start_time=now - timedelta(hours=3, minutes=10 * i) if parked else None,
                end_time=now - timedelta(minutes=5 * i)
                if status is BookingStatus.COMPLETED
                else None,
            )
            if amount is not None:
                await payments.create(booking_id=booking.id, amount=amount, method="UPI")

    print(
        f"Seeded {len(RIDERS) + len(DRIVERS) + 1} users, {len(LOCATIONS)} locations, "
        f"{len(BOOKINGS)} bookings."
    )


async def main():
    database = Database.from_settings(settings)
    await database.start()
    try:
        await seed(database)
    finally:
        await database.stop()


if __name__ == "__main__":
    asyncio.run(main())
