"""Booking router - public endpoints for appointment requests"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...schemas import ApiResponse
from .schemas import BookingCreate, BookingResponse, to_booking_response
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/requests", tags=["Booking Requests"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.post("", response_model=ApiResponse[BookingResponse], status_code=status.HTTP_201_CREATED)
async def create_request(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Submit an appointment request with one to three preferred times"""
    request = service.submit(data)
    return ApiResponse(
        message="Booking request submitted successfully", data=to_booking_response(request)
    )


@router.get("/{request_id}", response_model=ApiResponse[BookingResponse])
async def get_request(
    request_id: int,
    service: BookingService = Depends(get_booking_service),
):
    """Get a request by ID so customers can check its status"""
    return ApiResponse(data=to_booking_response(service.get_request(request_id)))
