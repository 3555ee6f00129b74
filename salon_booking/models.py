from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Request lifecycle
REQUEST_PENDING = "pending"
REQUEST_CONFIRMED = "confirmed"
REQUEST_CANCELLED = "cancelled"
REQUEST_RESCHEDULED = "rescheduled"
REQUEST_SUPERSEDED = "superseded"
REQUEST_STATUSES = (
    REQUEST_PENDING,
    REQUEST_CONFIRMED,
    REQUEST_CANCELLED,
    REQUEST_RESCHEDULED,
    REQUEST_SUPERSEDED,
)

APPOINTMENT_SCHEDULED = "scheduled"
APPOINTMENT_IN_PROGRESS = "in_progress"

ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPER_ADMIN)


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)  # bcrypt
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(50), default=ROLE_ADMIN, nullable=False)  # admin, super_admin
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    # Lockout tracking - locked_until stays NULL until the attempt threshold is reached
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    password_changed_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    reset_tokens = relationship(
        "PasswordResetToken", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("admin_users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    token_hash = Column(String(255), nullable=False, index=True)  # sha256 of the raw token
    expires_at = Column(DateTime, nullable=False, index=True)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("AdminUser", back_populates="reset_tokens")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)

    requests = relationship("AppointmentRequest", back_populates="customer")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=True)
    max_concurrent = Column(Integer, default=1, nullable=False)  # Not enforced at approval time
    cancellation_hours = Column(Integer, default=24, nullable=True)
    reschedule_hours = Column(Integer, default=24, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    deleted_at = Column(DateTime, nullable=True)


class AppointmentRequest(Base):
    __tablename__ = "appointment_requests"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    # pending, confirmed, cancelled, rescheduled, superseded
    status = Column(String(20), default=REQUEST_PENDING, nullable=False, index=True)
    customer_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)

    customer = relationship("Customer", back_populates="requests")
    service = relationship("Service")
    preferences = relationship(
        "RequestTimePreference",
        back_populates="request",
        order_by="RequestTimePreference.priority",
        cascade="all, delete-orphan",
    )
    appointment = relationship("Appointment", back_populates="request", uselist=False)


class RequestTimePreference(Base):
    __tablename__ = "request_time_preferences"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(
        Integer, ForeignKey("appointment_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    preferred_datetime = Column(DateTime, nullable=False)
    priority = Column(Integer, nullable=False)  # 1 = most preferred
    is_selected = Column(Boolean, default=False, nullable=False)

    request = relationship("AppointmentRequest", back_populates="preferences")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("appointment_requests.id"), nullable=False, index=True)
    preference_id = Column(Integer, ForeignKey("request_time_preferences.id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    scheduled_datetime = Column(DateTime, nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False)
    # scheduled, in_progress, completed, cancelled
    status = Column(String(20), default=APPOINTMENT_SCHEDULED, nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    deleted_at = Column(DateTime, nullable=True)

    request = relationship("AppointmentRequest", back_populates="appointment")
    preference = relationship("RequestTimePreference")
    customer = relationship("Customer")
    service = relationship("Service")
