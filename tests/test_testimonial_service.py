import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.models.api_models import TestimonialRequest
from app.services.testimonial_service import (
    MISSING_FIELDS_MESSAGE,
    RATING_RANGE_MESSAGE,
    parse_rating,
)


def make_request(**overrides):
    fields = {
        "reviewerName": "Lina",
        "reviewerEmail": "lina@example.com",
        "reviewTitle": "Best massage in town",
        "reviewText": "Relaxing and professional.",
        "rating": 5,
        "genuineOpinion": True,
    }
    fields.update(overrides)
    return TestimonialRequest(**fields)


@pytest.mark.asyncio
async def test_create_assigns_created_at(testimonial_service, db):
    testimonial = await testimonial_service.create(make_request())
    assert testimonial.id == 1
    assert testimonial.rating == 5
    assert testimonial.genuine_opinion is True
    assert testimonial.created_at is not None
    assert db.testimonials[0]["review_title"] == "Best massage in town"


@pytest.mark.asyncio
async def test_title_is_optional_and_opinion_may_be_false(testimonial_service):
    testimonial = await testimonial_service.create(make_request(reviewTitle=None, genuineOpinion=False))
    assert testimonial.review_title is None
    assert testimonial.genuine_opinion is False


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["reviewerName", "reviewerEmail", "reviewText", "rating", "genuineOpinion"])
async def test_missing_fields(testimonial_service, db, missing):
    with pytest.raises(ValidationError) as exc:
        await testimonial_service.create(make_request(**{missing: None}))
    assert exc.value.message == MISSING_FIELDS_MESSAGE
    assert db.testimonials == []


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [6, -1, 4.5, "ten"])
async def test_rating_out_of_range(testimonial_service, rating):
    with pytest.raises(ValidationError) as exc:
        await testimonial_service.create(make_request(rating=rating))
    assert exc.value.message == RATING_RANGE_MESSAGE


@pytest.mark.parametrize("raw, expected", [(1, 1), (5, 5), ("3", 3), (4.0, 4)])
def test_parse_rating_accepts_integers(raw, expected):
    assert parse_rating(raw) == expected


@pytest.mark.asyncio
async def test_list_is_newest_first(testimonial_service):
    first = await testimonial_service.create(make_request(reviewerName="First"))
    second = await testimonial_service.create(make_request(reviewerName="Second"))
    listed = await testimonial_service.list()
    assert [t.id for t in listed] == [second.id, first.id]


@pytest.mark.asyncio
async def test_delete(testimonial_service, db):
    testimonial = await testimonial_service.create(make_request())
    await testimonial_service.delete(str(testimonial.id))
    assert db.testimonials == []

    with pytest.raises(NotFoundError) as exc:
        await testimonial_service.delete(str(testimonial.id))
    assert exc.value.message == f"Testimonial with ID {testimonial.id} not found."

    with pytest.raises(NotFoundError):
        await testimonial_service.delete("not-a-number")
