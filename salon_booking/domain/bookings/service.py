"""Booking service - Business logic for appointment requests"""

import logging

from sqlalchemy.orm import Session

from ...errors import InvalidService, RequestNotFound, SubmissionFailed
from ...models import AppointmentRequest
from ...security_utils import mask_email
from ..catalog.repository import ServiceRepository
from .repository import BookingRepository
from .schemas import BookingCreate

logger = logging.getLogger(__name__)


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def submit(self, data: BookingCreate) -> AppointmentRequest:
        """
        Create a pending request with its ranked time preferences.

        The service check, customer upsert, request and preference rows are
        one transaction: either all of them are stored or none.

        Raises:
            InvalidService: service missing, inactive or deleted
            SubmissionFailed: any unexpected database error
        """
        logger.info(
            f"📥 New booking request from {mask_email(data.customer.email)} "
            f"for service {data.service_id}"
        )

        try:
            service = ServiceRepository.get_active_service(self.db, data.service_id)
            if not service:
                raise InvalidService()

            customer = self.repo.upsert_customer(
                self.db, data.customer.name, data.customer.email, data.customer.phone
            )
            request = self.repo.create_request(self.db, customer.id, service.id, data.notes)

            for preferred in sorted(data.preferred_times, key=lambda p: p.priority):
                self.repo.add_preference(
                    self.db, request.id, preferred.datetime, preferred.priority
                )

            self.db.commit()
        except InvalidService:
            self.db.rollback()
            logger.warning(f"⚠️ Booking rejected: invalid service {data.service_id}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error creating booking request: {str(e)}")
            raise SubmissionFailed() from e

        logger.info(f"✅ Booking request {request.id} created")
        return self.get_request(request.id)

    def get_request(self, request_id: int) -> AppointmentRequest:
        request = self.repo.get_request(self.db, request_id)
        if not request:
            raise RequestNotFound()
        return request
