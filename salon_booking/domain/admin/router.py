"""Admin router - request review endpoints for salon staff"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_auth_service, get_current_user, protect_admin_route, require_super_admin
from ...database import get_db
from ...models import REQUEST_PENDING, AdminUser
from ...schemas import ApiResponse
from ..auth.router import to_user_response
from ..auth.schemas import AdminUserListItem
from ..auth.service import AuthService
from ..bookings.schemas import to_booking_response
from .schemas import (
    ApprovalData,
    ApproveRequest,
    CancelData,
    CancelRequest,
    DashboardData,
    DashboardStats,
    Pagination,
    RecentRequest,
    RequestListData,
    RescheduleData,
    RescheduleRequest,
    TopService,
)
from .service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=protect_admin_route())


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db)


@router.get("/requests", response_model=ApiResponse[RequestListData])
async def list_requests(
    status: str = Query(REQUEST_PENDING),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: AdminService = Depends(get_admin_service),
):
    """Get appointment requests, newest first, filtered by status"""
    requests, total = service.list_requests(status, limit, offset)
    return ApiResponse(
        data=RequestListData(
            requests=[to_booking_response(r) for r in requests],
            pagination=Pagination(
                total=total, limit=limit, offset=offset, has_more=offset + limit < total
            ),
        )
    )


@router.get("/dashboard", response_model=ApiResponse[DashboardData])
async def dashboard(
    current_user: AdminUser = Depends(get_current_user),
    service: AdminService = Depends(get_admin_service),
):
    """Get dashboard overview stats"""
    stats = service.dashboard()
    return ApiResponse(
        message="Dashboard data retrieved successfully",
        data=DashboardData(
            welcome=to_user_response(current_user),
            stats=DashboardStats(
                pending_requests=stats["pending_requests"],
                total_requests=stats["total_requests"],
                total_customers=stats["total_customers"],
            ),
            recent_requests=[
                RecentRequest(
                    request_id=r.id,
                    status=r.status,
                    customer_name=r.customer.name,
                    service_name=r.service.name,
                    submitted_at=r.created_at,
                )
                for r in stats["recent_requests"]
            ],
            top_services=[
                TopService(service_id=service_id, name=name, request_count=count)
                for service_id, name, count in stats["top_services"]
            ],
        ),
    )


@router.put("/requests/{request_id}/approve", response_model=ApiResponse[ApprovalData])
async def approve_request(
    request_id: int,
    data: ApproveRequest,
    current_user: AdminUser = Depends(get_current_user),
    service: AdminService = Depends(get_admin_service),
):
    """Approve a request at one of its preferred times and create the appointment"""
    appointment = service.approve(request_id, data.preference_id, current_user, data.admin_notes)
    request = appointment.request
    return ApiResponse(
        message="Request approved and appointment created",
        data=ApprovalData(
            appointment_id=appointment.id,
            request_id=request.id,
            customer_name=request.customer.name,
            customer_email=request.customer.email,
            service_name=request.service.name,
            scheduled_datetime=appointment.scheduled_datetime,
            duration_minutes=appointment.duration_minutes,
            status=appointment.status,
            admin_notes=request.admin_notes,
            approved_by=current_user.full_name,
        ),
    )


@router.put("/requests/{request_id}/reschedule", response_model=ApiResponse[RescheduleData])
async def reschedule_request(
    request_id: int,
    data: RescheduleRequest,
    service: AdminService = Depends(get_admin_service),
):
    """Suggest a different time for a pending request"""
    request = service.reschedule(request_id, data.suggested_datetime, data.admin_notes)
    return ApiResponse(
        message="Reschedule suggestion added",
        data=RescheduleData(
            request_id=request.id,
            status=request.status,
            customer_name=request.customer.name,
            customer_email=request.customer.email,
            service_name=request.service.name,
            suggested_datetime=data.suggested_datetime,
            admin_notes=request.admin_notes,
            updated_at=request.updated_at,
        ),
    )


@router.delete("/requests/{request_id}", response_model=ApiResponse[CancelData])
async def cancel_request(
    request_id: int,
    data: Optional[CancelRequest] = None,
    current_user: AdminUser = Depends(get_current_user),
    service: AdminService = Depends(get_admin_service),
):
    """Reject a pending request"""
    request = service.cancel(request_id, current_user, data.reason if data else None)
    return ApiResponse(
        message="Request cancelled",
        data=CancelData(
            request_id=request.id,
            customer_name=request.customer.name,
            status=request.status,
            admin_notes=request.admin_notes,
        ),
    )


@router.get(
    "/users",
    response_model=ApiResponse[list[AdminUserListItem]],
    dependencies=[Depends(require_super_admin)],
)
async def list_admin_users(auth_service: AuthService = Depends(get_auth_service)):
    """Get every admin account (super admins only)"""
    users = auth_service.list_admin_users()
    return ApiResponse(
        data=[
            AdminUserListItem(
                **to_user_response(u).model_dump(), isActive=u.is_active, createdAt=u.created_at
            )
            for u in users
        ]
    )
