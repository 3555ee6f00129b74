"""Admin repository - queries behind the request review screens"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import (
    APPOINTMENT_IN_PROGRESS,
    APPOINTMENT_SCHEDULED,
    REQUEST_PENDING,
    Appointment,
    AppointmentRequest,
    Customer,
    RequestTimePreference,
    Service,
)


def _live_requests(db: Session):
    return db.query(AppointmentRequest).filter(AppointmentRequest.deleted_at.is_(None))


class AdminRepository:
    """Repository for admin request handling"""

    @staticmethod
    def list_requests(
        db: Session, status: Optional[str], limit: int, offset: int
    ) -> tuple[list[AppointmentRequest], int]:
        """
        Get a page of requests, newest first.

        Args:
            status: Status to filter on, or None for every status

        Returns:
            Tuple of (requests, total matching)
        """
        query = _live_requests(db)
        if status is not None:
            query = query.filter(AppointmentRequest.status == status)

        total = query.count()
        requests = (
            query.options(
                joinedload(AppointmentRequest.customer),
                joinedload(AppointmentRequest.service),
                selectinload(AppointmentRequest.preferences),
            )
            .order_by(AppointmentRequest.created_at.desc(), AppointmentRequest.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return requests, total

    @staticmethod
    def get_request_for_update(db: Session, request_id: int) -> Optional[AppointmentRequest]:
        """Get a request and lock its row until the transaction ends"""
        return (
            _live_requests(db)
            .filter(AppointmentRequest.id == request_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def get_request(db: Session, request_id: int) -> Optional[AppointmentRequest]:
        return _live_requests(db).filter(AppointmentRequest.id == request_id).first()

    @staticmethod
    def get_preference(
        db: Session, preference_id: int, request_id: int
    ) -> Optional[RequestTimePreference]:
        return (
            db.query(RequestTimePreference)
            .filter(
                RequestTimePreference.id == preference_id,
                RequestTimePreference.request_id == request_id,
            )
            .first()
        )

    @staticmethod
    def count_active_appointments_at(db: Session, scheduled_datetime: datetime) -> int:
        """Count scheduled or in-progress appointments starting at this exact time"""
        return (
            db.query(func.count(Appointment.id))
            .filter(
                Appointment.scheduled_datetime == scheduled_datetime,
                Appointment.status.in_((APPOINTMENT_SCHEDULED, APPOINTMENT_IN_PROGRESS)),
                Appointment.deleted_at.is_(None),
            )
            .scalar()
        )

    @staticmethod
    def create_appointment(db: Session, **appointment_data) -> Appointment:
        appointment = Appointment(status=APPOINTMENT_SCHEDULED, **appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    @staticmethod
    def count_requests(db: Session, status: Optional[str] = None) -> int:
        query = _live_requests(db)
        if status is not None:
            query = query.filter(AppointmentRequest.status == status)
        return query.count()

    @staticmethod
    def count_pending(db: Session) -> int:
        return AdminRepository.count_requests(db, REQUEST_PENDING)

    @staticmethod
    def count_customers(db: Session) -> int:
        return db.query(Customer).filter(Customer.deleted_at.is_(None)).count()

    @staticmethod
    def recent_requests(db: Session, limit: int = 5) -> list[AppointmentRequest]:
        return (
            _live_requests(db)
            .options(
                joinedload(AppointmentRequest.customer), joinedload(AppointmentRequest.service)
            )
            .order_by(AppointmentRequest.created_at.desc(), AppointmentRequest.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def top_services(db: Session, limit: int = 5) -> list[tuple[int, str, int]]:
        """Services ranked by how many requests name them"""
        request_count = func.count(AppointmentRequest.id).label("request_count")
        return (
            db.query(Service.id, Service.name, request_count)
            .join(AppointmentRequest, AppointmentRequest.service_id == Service.id)
            .filter(AppointmentRequest.deleted_at.is_(None), Service.deleted_at.is_(None))
            .group_by(Service.id, Service.name)
            .order_by(request_count.desc(), Service.name.asc())
            .limit(limit)
            .all()
        )
