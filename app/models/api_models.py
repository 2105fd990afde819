from typing import Any, Optional
from pydantic import BaseModel

# --- Incoming Request Models ---
# Every field is optional here; presence is checked by the services so a
# missing field answers 400 with the API's own error body instead of 422.

class BookingRequest(BaseModel):
    service: Optional[str] = None
    therapyName: Optional[str] = None
    duration: Optional[Any] = None
    price: Optional[Any] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    datetime: Optional[Any] = None
    aromaOil: Optional[str] = None
    pressure: Optional[str] = None
    focusArea: Optional[str] = None
    avoidArea: Optional[str] = None


class TestimonialRequest(BaseModel):
    __test__ = False  # not a pytest class

    reviewerName: Optional[str] = None
    reviewerEmail: Optional[str] = None
    reviewTitle: Optional[str] = None
    reviewText: Optional[str] = None
    rating: Optional[Any] = None
    genuineOpinion: Optional[Any] = None


# --- Outgoing Response Models ---

class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
