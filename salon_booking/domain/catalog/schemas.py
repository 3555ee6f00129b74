"""Catalog domain schemas"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ServiceSummary(BaseModel):
    """A salon service as shown in booking forms"""

    id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: Optional[Decimal] = None
    max_concurrent: int

    class Config:
        from_attributes = True


class ServiceDetail(ServiceSummary):
    cancellation_hours: Optional[int] = None
    reschedule_hours: Optional[int] = None


class ServiceListResponse(BaseModel):
    success: bool = True
    data: list[ServiceSummary]
    count: int
