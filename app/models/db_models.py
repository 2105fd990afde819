from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

NOT_SPECIFIED = "Not specified"


class Booking(BaseModel):
    """A row of the booking_spa12 table."""
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    service: str
    therapy_name: str
    duration: str
    price: float
    name: str
    phone: str
    datetime: Any = Field(description="Start instant as stored (UTC ISO-8601)")
    aroma_oil: Optional[str] = NOT_SPECIFIED
    pressure: Optional[str] = NOT_SPECIFIED
    focus_area: Optional[str] = NOT_SPECIFIED
    avoid_area: Optional[str] = NOT_SPECIFIED
    booking_time: Optional[str] = None


class Testimonial(BaseModel):
    """A row of the testimonials table."""
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    reviewer_name: str
    reviewer_email: str
    review_title: Optional[str] = None
    review_text: str
    rating: int
    genuine_opinion: bool
    created_at: Optional[str] = None
