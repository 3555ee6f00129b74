"""Admin domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_future_datetime
from ...utils.sanitization import sanitize_notes
from ..auth.schemas import AdminUserResponse
from ..bookings.schemas import BookingResponse

MAX_ADMIN_NOTES_LENGTH = 1000


class ApproveRequest(BaseModel):
    preference_id: int = Field(..., gt=0)
    admin_notes: Optional[str] = None

    @field_validator("admin_notes")
    @classmethod
    def clean_notes(cls, v):
        return sanitize_notes(v, max_length=MAX_ADMIN_NOTES_LENGTH)


class RescheduleRequest(BaseModel):
    suggested_datetime: datetime
    admin_notes: Optional[str] = None

    @field_validator("suggested_datetime")
    @classmethod
    def check_future(cls, v):
        return validate_future_datetime(v)

    @field_validator("admin_notes")
    @classmethod
    def clean_notes(cls, v):
        return sanitize_notes(v, max_length=MAX_ADMIN_NOTES_LENGTH)


class CancelRequest(BaseModel):
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v):
        return sanitize_notes(v, max_length=MAX_ADMIN_NOTES_LENGTH)


# ============================================================================
# RESPONSES
# ============================================================================


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class RequestListData(BaseModel):
    requests: list[BookingResponse]
    pagination: Pagination


class ApprovalData(BaseModel):
    """Summary of the appointment created by an approval"""

    appointment_id: int
    request_id: int
    customer_name: str
    customer_email: str
    service_name: str
    scheduled_datetime: datetime
    duration_minutes: int
    status: str
    admin_notes: Optional[str] = None
    approved_by: str


class RescheduleData(BaseModel):
    request_id: int
    status: str
    customer_name: str
    customer_email: str
    service_name: str
    suggested_datetime: datetime
    admin_notes: Optional[str] = None
    updated_at: Optional[datetime] = None


class CancelData(BaseModel):
    request_id: int
    customer_name: str
    status: str
    admin_notes: Optional[str] = None


class DashboardStats(BaseModel):
    pending_requests: int
    total_requests: int
    total_customers: int


class RecentRequest(BaseModel):
    request_id: int
    status: str
    customer_name: str
    service_name: str
    submitted_at: Optional[datetime] = None


class TopService(BaseModel):
    service_id: int
    name: str
    request_count: int


class DashboardData(BaseModel):
    welcome: AdminUserResponse
    stats: DashboardStats
    recent_requests: list[RecentRequest]
    top_services: list[TopService]
