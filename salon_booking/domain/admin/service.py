"""Admin service - Approval transaction and other request dispositions"""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import (
    AppError,
    ApprovalFailed,
    InternalError,
    InvalidPreference,
    RequestNotFound,
    StateConflict,
    ValidationFailed,
)
from ...models import (
    REQUEST_CANCELLED,
    REQUEST_CONFIRMED,
    REQUEST_PENDING,
    REQUEST_RESCHEDULED,
    REQUEST_STATUSES,
    AdminUser,
    Appointment,
    AppointmentRequest,
    utcnow,
)
from .repository import AdminRepository

logger = logging.getLogger(__name__)

STATUS_ALL = "all"
LIST_STATUSES = REQUEST_STATUSES + (STATUS_ALL,)


class AdminService:
    """Service layer for admin request handling"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.repo = AdminRepository()
        self.clock = clock

    def list_requests(
        self, status: str = REQUEST_PENDING, limit: int = 50, offset: int = 0
    ) -> tuple[list[AppointmentRequest], int]:
        if status not in LIST_STATUSES:
            raise ValidationFailed(f"Invalid status. Must be one of: {', '.join(LIST_STATUSES)}")
        return self.repo.list_requests(
            self.db, None if status == STATUS_ALL else status, limit, offset
        )

    def _get_pending(self, request_id: int, for_update: bool = False) -> AppointmentRequest:
        if for_update:
            request = self.repo.get_request_for_update(self.db, request_id)
        else:
            request = self.repo.get_request(self.db, request_id)
        status = request.status if request else None
        if status == REQUEST_PENDING:
            return request

        # Release the row lock before reporting
        if for_update:
            self.db.rollback()
        if status is None:
            raise RequestNotFound()
        raise StateConflict(f"Request is already {status}")

    def approve(
        self,
        request_id: int,
        preference_id: int,
        admin: AdminUser,
        admin_notes: Optional[str] = None,
    ) -> Appointment:
        """
        Confirm a pending request at one of its preferred times.

        Selecting the preference, confirming the request and creating the
        appointment happen in one transaction; any failure rolls all of it
        back.

        Raises:
            RequestNotFound: no live request with this id
            StateConflict: the request is not pending
            InvalidPreference: the preference belongs to another request
            ApprovalFailed: any unexpected database error
        """
        logger.info(f"📝 Admin {admin.id} approving request {request_id} at preference {preference_id}")

        try:
            request = self._get_pending(request_id, for_update=True)

            preference = self.repo.get_preference(self.db, preference_id, request.id)
            if not preference:
                raise InvalidPreference()

            service = request.service
            # Capacity is reported, not enforced
            booked = self.repo.count_active_appointments_at(self.db, preference.preferred_datetime)
            if booked >= (service.max_concurrent or 1):
                logger.warning(
                    f"⚠️ {booked} appointment(s) already at {preference.preferred_datetime.isoformat()} "
                    f"(service {service.id} allows {service.max_concurrent}); approving anyway"
                )

            for candidate in request.preferences:
                candidate.is_selected = candidate.id == preference.id

            request.status = REQUEST_CONFIRMED
            request.admin_notes = admin_notes or f"Approved by {admin.full_name}"
            request.updated_at = self.clock()

            appointment = self.repo.create_appointment(
                self.db,
                request_id=request.id,
                preference_id=preference.id,
                customer_id=request.customer_id,
                service_id=request.service_id,
                scheduled_datetime=preference.preferred_datetime,
                duration_minutes=service.duration_minutes,
                created_by=admin.id,
            )

            self.db.commit()
        except AppError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error approving request {request_id}: {str(e)}")
            raise ApprovalFailed() from e

        self.db.refresh(appointment)
        logger.info(f"✅ Request {request_id} confirmed as appointment {appointment.id}")
        return appointment

    def reschedule(
        self, request_id: int, suggested_datetime: datetime, admin_notes: Optional[str] = None
    ) -> AppointmentRequest:
        """Propose another time for a pending request"""
        request = self._get_pending(request_id, for_update=True)

        suggestion = f"Suggested reschedule to {suggested_datetime.isoformat()}."
        request.admin_notes = f"{suggestion} {admin_notes}" if admin_notes else suggestion
        request.status = REQUEST_RESCHEDULED
        request.updated_at = self.clock()
        self._commit(f"rescheduling request {request_id}")

        logger.info(f"📅 Request {request_id} marked for reschedule to {suggested_datetime.isoformat()}")
        return request

    def cancel(
        self, request_id: int, admin: AdminUser, reason: Optional[str] = None
    ) -> AppointmentRequest:
        request = self._get_pending(request_id, for_update=True)

        request.admin_notes = (
            f"Cancelled by {admin.full_name}. Reason: {reason or 'No reason provided'}"
        )
        request.status = REQUEST_CANCELLED
        request.updated_at = self.clock()
        self._commit(f"cancelling request {request_id}")

        logger.info(f"🗑️ Request {request_id} cancelled by admin {admin.id}")
        return request

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error {action}: {str(e)}")
            raise InternalError(f"Failed while {action}") from e

    def dashboard(self) -> dict:
        """Counts, recent requests and the most requested services"""
        return {
            "pending_requests": self.repo.count_pending(self.db),
            "total_requests": self.repo.count_requests(self.db),
            "total_customers": self.repo.count_customers(self.db),
            "recent_requests": self.repo.recent_requests(self.db),
            "top_services": self.repo.top_services(self.db),
        }
