"""Booking repository - Data access layer for appointment requests

Writes here only add and flush; the calling service owns the transaction
and commits or rolls back once.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import REQUEST_PENDING, AppointmentRequest, Customer, RequestTimePreference


class BookingRepository:
    """Repository for booking data access"""

    @staticmethod
    def get_request(db: Session, request_id: int) -> Optional[AppointmentRequest]:
        """Get a non-deleted request with customer, service and preferences loaded"""
        return (
            db.query(AppointmentRequest)
            .options(
                joinedload(AppointmentRequest.customer),
                joinedload(AppointmentRequest.service),
                selectinload(AppointmentRequest.preferences),
            )
            .filter(AppointmentRequest.id == request_id, AppointmentRequest.deleted_at.is_(None))
            .first()
        )

    @staticmethod
    def upsert_customer(db: Session, name: str, email: str, phone: str) -> Customer:
        """Insert a customer or refresh the name/phone of the one with this email"""
        customer = db.query(Customer).filter(Customer.email == email).first()
        if customer is None:
            customer = Customer(name=name, email=email, phone=phone)
            db.add(customer)
        else:
            customer.name = name
            customer.phone = phone
            customer.deleted_at = None
        db.flush()
        return customer

    @staticmethod
    def create_request(
        db: Session, customer_id: int, service_id: int, notes: Optional[str]
    ) -> AppointmentRequest:
        request = AppointmentRequest(
            customer_id=customer_id,
            service_id=service_id,
            customer_notes=notes,
            status=REQUEST_PENDING,
        )
        db.add(request)
        db.flush()
        return request

    @staticmethod
    def add_preference(
        db: Session, request_id: int, preferred_datetime: datetime, priority: int
    ) -> RequestTimePreference:
        preference = RequestTimePreference(
            request_id=request_id,
            preferred_datetime=preferred_datetime,
            priority=priority,
            is_selected=False,
        )
        db.add(preference)
        return preference
