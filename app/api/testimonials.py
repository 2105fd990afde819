from fastapi import APIRouter

from app.models.api_models import TestimonialRequest, MessageResponse
from app.services.testimonial_service import TestimonialService

router = APIRouter()
testimonial_service = TestimonialService()


@router.post("/testimonials", status_code=201)
async def create_testimonial(req: TestimonialRequest):
    testimonial = await testimonial_service.create(req)
    return testimonial.model_dump()


@router.get("/testimonials")
async def list_testimonials():
    testimonials = await testimonial_service.list()
    return [t.model_dump() for t in testimonials]


@router.delete("/testimonials/{testimonial_id}", response_model=MessageResponse)
async def delete_testimonial(testimonial_id: str):
    await testimonial_service.delete(testimonial_id)
    return {"message": f"Testimonial with ID {testimonial_id} deleted successfully."}
