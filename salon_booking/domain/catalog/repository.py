"""Service catalog repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Service


class ServiceRepository:
    """Repository for salon service lookups"""

    @staticmethod
    def get_active_services(db: Session) -> list[Service]:
        """Get all bookable services ordered by name"""
        return (
            db.query(Service)
            .filter(Service.is_active.is_(True), Service.deleted_at.is_(None))
            .order_by(Service.name.asc())
            .all()
        )

    @staticmethod
    def get_active_service(db: Session, service_id: int) -> Optional[Service]:
        """Get a bookable service by ID"""
        return (
            db.query(Service)
            .filter(
                Service.id == service_id,
                Service.is_active.is_(True),
                Service.deleted_at.is_(None),
            )
            .first()
        )
