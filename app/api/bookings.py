from fastapi import APIRouter, BackgroundTasks

from app.models.api_models import BookingRequest, MessageResponse
from app.services.booking_service import BookingService

router = APIRouter()
booking_service = BookingService()


@router.get("/booking_spa12")
async def get_latest_booking():
    # Only the most recent booking is exposed
    return await booking_service.list(limit=1)


@router.post("/booking_spa12", status_code=201)
async def create_booking(req: BookingRequest, background_tasks: BackgroundTasks):
    booking = await booking_service.create(req, background_tasks)
    return booking.model_dump()


@router.delete("/booking_spa12/{booking_id}", response_model=MessageResponse)
async def cancel_booking(booking_id: str, background_tasks: BackgroundTasks):
    await booking_service.cancel(booking_id, background_tasks)
    return {"message": f"Booking with ID {booking_id} deleted successfully."}
