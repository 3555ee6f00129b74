"""Booking domain schemas - Pydantic models for validation"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import AppointmentRequest
from ...shared.validators import validate_email, validate_future_datetime, validate_phone
from ...utils.sanitization import sanitize_notes

MAX_PREFERRED_TIMES = 3
MAX_NOTES_LENGTH = 1000


class CustomerIn(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: str
    phone: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if not v:
            raise ValueError("Phone number is required")
        return validate_phone(v)


class PreferredTimeIn(BaseModel):
    """A candidate appointment time; priority 1 is the most preferred"""

    datetime: dt.datetime
    priority: int = Field(..., ge=1, le=MAX_PREFERRED_TIMES)

    @field_validator("datetime")
    @classmethod
    def check_future(cls, v):
        return validate_future_datetime(v)


class BookingCreate(BaseModel):
    """Schema for submitting a new appointment request"""

    customer: CustomerIn
    service_id: int = Field(..., gt=0)
    preferred_times: list[PreferredTimeIn] = Field(
        ..., min_length=1, max_length=MAX_PREFERRED_TIMES
    )
    notes: Optional[str] = None

    @field_validator("preferred_times")
    @classmethod
    def check_unique_priorities(cls, v):
        priorities = [p.priority for p in v]
        if len(set(priorities)) != len(priorities):
            raise ValueError("Each preferred time must have a different priority")
        return v

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v):
        return sanitize_notes(v, max_length=MAX_NOTES_LENGTH)


# ============================================================================
# RESPONSES
# ============================================================================


class CustomerOut(BaseModel):
    id: Optional[int] = None
    name: str
    email: str
    phone: Optional[str] = None


class ServiceBrief(BaseModel):
    id: int
    name: str
    duration_minutes: int
    price: Optional[Decimal] = None
    max_concurrent: Optional[int] = None


class PreferenceOut(BaseModel):
    id: int
    preferred_datetime: dt.datetime
    priority: int
    is_selected: bool

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    """Schema for an appointment request with its customer, service and preferences"""

    request_id: int
    status: str
    customer: CustomerOut
    service: ServiceBrief
    preferred_times: list[PreferenceOut]
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    submitted_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


def to_booking_response(request: AppointmentRequest) -> BookingResponse:
    customer = request.customer
    service = request.service
    return BookingResponse(
        request_id=request.id,
        status=request.status,
        customer=CustomerOut(
            id=customer.id, name=customer.name, email=customer.email, phone=customer.phone
        ),
        service=ServiceBrief(
            id=service.id,
            name=service.name,
            duration_minutes=service.duration_minutes,
            price=service.price,
            max_concurrent=service.max_concurrent,
        ),
        preferred_times=[PreferenceOut.model_validate(p) for p in request.preferences],
        notes=request.customer_notes,
        admin_notes=request.admin_notes,
        submitted_at=request.created_at,
        updated_at=request.updated_at,
    )
