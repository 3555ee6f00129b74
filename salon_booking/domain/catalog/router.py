"""Catalog router - public service listing"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...errors import ServiceNotFound
from ...schemas import ApiResponse
from .repository import ServiceRepository
from .schemas import ServiceDetail, ServiceListResponse, ServiceSummary

router = APIRouter(prefix="/services", tags=["Services"])


@router.get("", response_model=ServiceListResponse)
async def list_services(db: Session = Depends(get_db)):
    """Get all active services"""
    services = ServiceRepository.get_active_services(db)
    return ServiceListResponse(
        data=[ServiceSummary.model_validate(s) for s in services], count=len(services)
    )


@router.get("/{service_id}", response_model=ApiResponse[ServiceDetail])
async def get_service(service_id: int, db: Session = Depends(get_db)):
    """Get a specific active service"""
    service = ServiceRepository.get_active_service(db, service_id)
    if not service:
        raise ServiceNotFound()
    return ApiResponse(data=ServiceDetail.model_validate(service))
