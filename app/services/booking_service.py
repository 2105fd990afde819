import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import BackgroundTasks

from app.core.config_loader import load_spa_config, get_therapist_days_off, get_timezone
from app.core.exceptions import NotFoundError, ScheduleConflictError
from app.core.logger import logger
from app.models.api_models import BookingRequest
from app.models.db_models import Booking
from app.services.db_service import db_service, parse_row_id
from app.services.notification_service import notify_booking_created, notify_booking_cancelled
from app.services.schedule_validator import (
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_LOOKBACK_HOURS,
    Reject,
    RejectReason,
    ScheduleValidator,
)
from app.services.time_normalizer import normalize

Notifier = Callable[[Booking], Awaitable[Any]]


class BookingService:
    def __init__(
        self,
        db=None,
        validator: Optional[ScheduleValidator] = None,
        on_created: Notifier = notify_booking_created,
        on_cancelled: Notifier = notify_booking_cancelled,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.config = config if config is not None else load_spa_config()
        self.tz = get_timezone(self.config)
        self.validator = validator or ScheduleValidator(
            get_therapist_days_off(self.config),
            self.tz,
            buffer_minutes=self.config.get("booking_buffer_minutes", DEFAULT_BUFFER_MINUTES),
            lookback_hours=self.config.get("conflict_lookback_hours", DEFAULT_LOOKBACK_HOURS),
        )
        self.db = db or db_service
        self.on_created = on_created
        self.on_cancelled = on_cancelled
        # Serializes conflict scan + insert per therapist within this process
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _therapist_lock(self, therapist: str):
        """Per-therapist lock, dropped again once nobody holds or waits for it."""
        lock = self._locks.setdefault(therapist, asyncio.Lock())
        self._lock_users[therapist] = self._lock_users.get(therapist, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[therapist] -= 1
            if not self._lock_users[therapist]:
                del self._lock_users[therapist]
                del self._locks[therapist]

    def _conflict_error(self, rejection: Reject) -> ScheduleConflictError:
        status_code = 400 if rejection.reason == RejectReason.DAY_OFF else 409
        logger.info(f"🚫 Booking rejected ({rejection.reason.value}): {rejection.message}")
        return ScheduleConflictError(rejection.message, status_code=status_code)

    async def create(self, request: BookingRequest, background_tasks: Optional[BackgroundTasks] = None) -> Booking:
        """
        Validates and stores a booking, then announces it.
        Raises ValidationError, ScheduleConflictError or StorageError.
        """
        candidate = self.validator.build_candidate(request)
        logger.info(f"📥 Booking Request - Therapist: {candidate.therapist}, Start: {candidate.start.isoformat()}, Duration: {candidate.duration.minutes}min")

        # Day off needs no storage round trip
        rejection = self.validator.check_day_off(candidate)
        if rejection:
            raise self._conflict_error(rejection)

        async with self._therapist_lock(candidate.therapist):
            window_start, window_end = self.validator.conflict_window(candidate)
            rows = await self.db.query_bookings_for_therapist(candidate.therapist, window_start, window_end)
            existing = [Booking.model_validate(row) for row in rows]

            outcome = self.validator.validate(candidate, existing)
            if isinstance(outcome, Reject):
                raise self._conflict_error(outcome)

            row = candidate.to_row()
            row["booking_time"] = datetime.now(timezone.utc).isoformat()
            booking = Booking.model_validate(await self.db.insert_booking(row))

        logger.info(f"✅ Booking {booking.id} created: {booking.name} with {booking.therapy_name}")
        await self._dispatch(self.on_created, booking, "created", background_tasks)
        return booking

    async def list(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Bookings newest first, each with raw_datetime, formattedDate and formattedTime.
        """
        rows = await self.db.list_bookings(limit)
        result = []
        for row in rows:
            when = normalize(row.get("datetime"), self.tz, default_tz=timezone.utc)
            result.append({
                **row,
                "raw_datetime": row.get("datetime"),
                "formattedDate": when.date,
                "formattedTime": when.time,
            })
        return result

    async def cancel(self, booking_id: Any, background_tasks: Optional[BackgroundTasks] = None) -> Booking:
        row_id = parse_row_id(booking_id)
        if row_id is None:
            raise NotFoundError(f"Booking with ID {booking_id} not found.")

        row = await self.db.delete_booking_by_id(row_id)
        if row is None:
            raise NotFoundError(f"Booking with ID {booking_id} not found.")

        booking = Booking.model_validate(row)
        logger.info(f"🗑️ Booking {row_id} cancelled ({booking.name})")
        await self._dispatch(self.on_cancelled, booking, "cancelled", background_tasks)
        return booking

    async def _dispatch(self, notifier: Notifier, booking: Booking, event: str, background_tasks: Optional[BackgroundTasks]):
        """Runs after the response when background tasks are available, inline otherwise."""
        if background_tasks is not None:
            background_tasks.add_task(self._notify, notifier, booking, event)
        else:
            await self._notify(notifier, booking, event)

    async def _notify(self, notifier: Notifier, booking: Booking, event: str):
        try:
            await notifier(booking)
        except Exception as e:
            # Best effort: the booking change is already committed
            logger.error(f"❌ Failed to send booking {event} notification for booking {booking.id}: {e}")
