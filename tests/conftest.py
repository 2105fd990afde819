import asyncio
import itertools
from datetime import timezone
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import StorageError
from app.services.booking_service import BookingService
from app.services.testimonial_service import TestimonialService
from app.services.time_normalizer import parse_instant

SPA_CONFIG = {
    "spa_name": "Test Spa",
    "timezone": "Asia/Phnom_Penh",
    "booking_buffer_minutes": 10,
    "conflict_lookback_hours": 2,
    "therapist_days_off": {
        "Mr.Duong": "Thursday",
        "Mr.Sali": "Monday",
        "Ms.SreyNeth": "Friday",
    },
    "notifications": {"telegram_enabled": True},
}


class InMemoryDB:
    """Stands in for DBService: same coroutine interface, rows kept in lists."""

    def __init__(self):
        self.bookings = []
        self.testimonials = []
        self._ids = itertools.count(1)
        self.fail = False

    def _check(self):
        if self.fail:
            raise StorageError("Failed to insert booking.")

    async def query_bookings_for_therapist(self, therapist, window_start, window_end):
        self._check()
        # Yield like a real round trip so unguarded creates would interleave
        await asyncio.sleep(0)
        return [
            dict(row) for row in self.bookings
            if row["therapy_name"] == therapist
            and window_start <= parse_instant(row["datetime"], timezone.utc) <= window_end
        ]

    async def insert_booking(self, booking_data):
        self._check()
        row = {"id": next(self._ids), **booking_data}
        self.bookings.append(row)
        return dict(row)

    async def list_bookings(self, limit=None):
        self._check()
        rows = sorted(self.bookings, key=lambda r: (r["booking_time"], r["id"]), reverse=True)
        return [dict(r) for r in (rows[:limit] if limit else rows)]

    async def delete_booking_by_id(self, booking_id):
        self._check()
        for row in self.bookings:
            if row["id"] == booking_id:
                self.bookings.remove(row)
                return dict(row)
        return None

    async def insert_testimonial(self, testimonial_data):
        self._check()
        row = {"id": next(self._ids), **testimonial_data}
        self.testimonials.append(row)
        return dict(row)

    async def list_testimonials(self):
        self._check()
        rows = sorted(self.testimonials, key=lambda r: (r["created_at"], r["id"]), reverse=True)
        return [dict(r) for r in rows]

    async def delete_testimonial_by_id(self, testimonial_id):
        self._check()
        for row in self.testimonials:
            if row["id"] == testimonial_id:
                self.testimonials.remove(row)
                return dict(row)
        return None


@pytest.fixture
def db():
    return InMemoryDB()


@pytest.fixture
def booking_service(db):
    return BookingService(
        db=db,
        on_created=AsyncMock(),
        on_cancelled=AsyncMock(),
        config=SPA_CONFIG,
    )


@pytest.fixture
def testimonial_service(db):
    return TestimonialService(db=db)
