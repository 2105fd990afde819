from datetime import datetime, timezone
from typing import Any, List

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logger import logger
from app.models.api_models import TestimonialRequest
from app.models.db_models import Testimonial
from app.services.db_service import db_service, parse_row_id

MISSING_FIELDS_MESSAGE = "All testimonial fields (except title) are required."
RATING_RANGE_MESSAGE = "Rating must be between 1 and 5."


def parse_rating(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValidationError(RATING_RANGE_MESSAGE)
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, str) and raw.strip().isdigit():
        raw = int(raw.strip())
    if not isinstance(raw, int) or not 1 <= raw <= 5:
        raise ValidationError(RATING_RANGE_MESSAGE)
    return raw


def parse_genuine_opinion(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
        return raw.strip().lower() == "true"
    if raw in (0, 1):
        return bool(raw)
    raise ValidationError("genuineOpinion must be true or false.")


class TestimonialService:
    __test__ = False  # not a pytest class

    def __init__(self, db=None):
        self.db = db or db_service

    async def create(self, request: TestimonialRequest) -> Testimonial:
        """
        Stores a testimonial. The title is optional; a falsy rating counts as missing.
        """
        if (not request.reviewerName or not request.reviewerEmail or not request.reviewText
                or not request.rating or request.genuineOpinion is None):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        row = {
            "reviewer_name": request.reviewerName,
            "reviewer_email": request.reviewerEmail,
            "review_title": request.reviewTitle,
            "review_text": request.reviewText,
            "rating": parse_rating(request.rating),
            "genuine_opinion": parse_genuine_opinion(request.genuineOpinion),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        testimonial = Testimonial.model_validate(await self.db.insert_testimonial(row))
        logger.info(f"⭐ Testimonial {testimonial.id} added by {testimonial.reviewer_name} ({testimonial.rating}/5)")
        return testimonial

    async def list(self) -> List[Testimonial]:
        rows = await self.db.list_testimonials()
        return [Testimonial.model_validate(row) for row in rows]

    async def delete(self, testimonial_id: Any) -> None:
        row_id = parse_row_id(testimonial_id)
        if row_id is None or await self.db.delete_testimonial_by_id(row_id) is None:
            raise NotFoundError(f"Testimonial with ID {testimonial_id} not found.")
        logger.info(f"🗑️ Testimonial {row_id} deleted")
