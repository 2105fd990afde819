from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Iterable, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from app.core.exceptions import ValidationError
from app.core.logger import logger
from app.models.api_models import BookingRequest
from app.models.db_models import Booking, NOT_SPECIFIED
from app.models.value_objects import Duration, Price
from app.services.time_normalizer import INVALID_DATE, parse_instant, to_utc_iso, weekday_name

DEFAULT_BUFFER_MINUTES = 10
DEFAULT_LOOKBACK_HOURS = 2

MISSING_FIELDS_MESSAGE = "All booking fields are required."


class Candidate(BaseModel):
    """A booking request that passed field checks but is not persisted yet."""
    model_config = ConfigDict(frozen=True)

    service: str
    therapist: str
    duration: Duration
    duration_label: str
    price: Price
    customer_name: str
    customer_contact: str
    start: datetime
    aroma_oil: str = NOT_SPECIFIED
    pressure: str = NOT_SPECIFIED
    focus_area: str = NOT_SPECIFIED
    avoid_area: str = NOT_SPECIFIED

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration.minutes)

    def to_row(self) -> dict:
        return {
            "service": self.service,
            "therapy_name": self.therapist,
            "duration": self.duration_label,
            "price": self.price.amount,
            "name": self.customer_name,
            "phone": self.customer_contact,
            "datetime": to_utc_iso(self.start),
            "aroma_oil": self.aroma_oil,
            "pressure": self.pressure,
            "focus_area": self.focus_area,
            "avoid_area": self.avoid_area,
        }


class RejectReason(str, Enum):
    DAY_OFF = "day_off"
    OVERLAP = "overlap"


class Accept(BaseModel):
    candidate: Candidate


class Reject(BaseModel):
    reason: RejectReason
    message: str
    therapist: str
    weekday: Optional[str] = None
    conflict_start: Optional[datetime] = None
    conflict_end: Optional[datetime] = None


Outcome = Union[Accept, Reject]


class ScheduleValidator:
    """
    Decides whether a therapist can take a booking.

    Rules, first failure wins:
      1. the start must not fall on the therapist's weekly day off
         (weekday taken in the spa's timezone, unknown therapists skip this);
      2. the candidate [start, end) must not overlap any existing booking of
         the same therapist, where the existing booking is stretched by the
         buffer after its end only.
    """

    def __init__(
        self,
        days_off: Mapping[str, str],
        tz: tzinfo,
        buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
        lookback_hours: int = DEFAULT_LOOKBACK_HOURS,
    ):
        self.days_off = days_off
        self.tz = tz
        self.buffer = timedelta(minutes=buffer_minutes)
        self.lookback = timedelta(hours=lookback_hours)

    def build_candidate(self, request: BookingRequest) -> Candidate:
        """
        Checks required fields and parses datetime, duration and price.
        Raises ValidationError.
        """
        required = [
            request.service, request.duration, request.price, request.name,
            request.phone, request.datetime, request.therapyName,
        ]
        if any(value is None or (isinstance(value, str) and not value.strip()) for value in required):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        start = parse_instant(request.datetime, self.tz)
        duration = Duration.parse(request.duration)
        self._check_in_range(start, duration)

        return Candidate(
            service=request.service,
            therapist=request.therapyName,
            duration=duration,
            duration_label=str(request.duration).strip(),
            price=Price.parse(request.price),
            customer_name=request.name,
            customer_contact=request.phone,
            start=start,
            aroma_oil=request.aromaOil or NOT_SPECIFIED,
            pressure=request.pressure or NOT_SPECIFIED,
            focus_area=request.focusArea or NOT_SPECIFIED,
            avoid_area=request.avoidArea or NOT_SPECIFIED,
        )

    def _check_in_range(self, start: datetime, duration: Duration):
        """Start, end and the look-back window must stay representable in UTC and local time."""
        try:
            end = start + timedelta(minutes=duration.minutes)
            for instant in (start, end, start - self.lookback):
                instant.astimezone(timezone.utc)
                instant.astimezone(self.tz)
        except OverflowError:
            raise ValidationError(INVALID_DATE)

    def conflict_window(self, candidate: Candidate) -> Tuple[datetime, datetime]:
        """Storage pre-filter: existing starts in [start - lookback, end]."""
        return candidate.start - self.lookback, candidate.end

    def check_day_off(self, candidate: Candidate) -> Optional[Reject]:
        day_off = self.days_off.get(candidate.therapist)
        if day_off is None:
            return None

        weekday = weekday_name(candidate.start, self.tz)
        if weekday != day_off:
            return None

        return Reject(
            reason=RejectReason.DAY_OFF,
            message=f"{candidate.therapist} is off on {day_off}. Please choose another date or therapist.",
            therapist=candidate.therapist,
            weekday=weekday,
        )

    def find_conflict(self, candidate: Candidate, existing: Iterable[Booking]) -> Optional[Reject]:
        for booking in existing:
            if booking.therapy_name != candidate.therapist:
                continue

            try:
                existing_start = parse_instant(booking.datetime, timezone.utc)
                existing_minutes = Duration.parse(booking.duration).minutes
                existing_end = existing_start + timedelta(minutes=existing_minutes) + self.buffer
            except (ValidationError, OverflowError) as e:
                logger.warning(f"⚠️ Skipping unreadable booking {booking.id} in conflict scan: {e}")
                continue

            if candidate.start < existing_end and candidate.end > existing_start:
                return Reject(
                    reason=RejectReason.OVERLAP,
                    message=(
                        f"Therapist {candidate.therapist} already has a booking from "
                        f"{to_utc_iso(existing_start)} to {to_utc_iso(existing_end)}. "
                        f"Please choose another time."
                    ),
                    therapist=candidate.therapist,
                    conflict_start=existing_start,
                    conflict_end=existing_end,
                )
        return None

    def validate(self, candidate: Candidate, existing: Iterable[Booking]) -> Outcome:
        rejection = self.check_day_off(candidate) or self.find_conflict(candidate, existing)
        if rejection:
            return rejection
        return Accept(candidate=candidate)
