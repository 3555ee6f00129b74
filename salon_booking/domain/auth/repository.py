"""Admin user repository - Database operations for admin accounts"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import AdminUser, PasswordResetToken


class AdminUserRepository:
    """Repository for admin account database operations"""

    @staticmethod
    def get_active_by_email(db: Session, email: str, for_update: bool = False) -> Optional[AdminUser]:
        """Get an active admin user by email, optionally locking the row"""
        query = db.query(AdminUser).filter(
            AdminUser.email == email.strip().lower(), AdminUser.is_active.is_(True)
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    @staticmethod
    def get_active_by_id(db: Session, user_id: int) -> Optional[AdminUser]:
        """Get an active admin user by ID"""
        return (
            db.query(AdminUser)
            .filter(AdminUser.id == user_id, AdminUser.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[AdminUser]:
        """Get an admin user by email regardless of status"""
        return db.query(AdminUser).filter(AdminUser.email == email.strip().lower()).first()

    @staticmethod
    def list_users(db: Session) -> list[AdminUser]:
        """Get all admin users"""
        return db.query(AdminUser).order_by(AdminUser.created_at.asc(), AdminUser.id.asc()).all()

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: str,
        now: datetime,
    ) -> AdminUser:
        """Create a new active admin user"""
        user = AdminUser(
            email=email.strip().lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=True,
            failed_login_attempts=0,
            password_changed_at=now,
            created_at=now,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def record_failed_login(
        db: Session, user: AdminUser, max_attempts: int, locked_until: datetime
    ) -> AdminUser:
        """
        Count a failed login attempt and lock the account at the threshold.

        The counter is incremented in SQL and read back, so attempts made at
        the same time are all counted. An existing lock is never cleared here.
        """
        db.query(AdminUser).filter(AdminUser.id == user.id).update(
            {AdminUser.failed_login_attempts: AdminUser.failed_login_attempts + 1},
            synchronize_session=False,
        )
        attempts = (
            db.query(AdminUser.failed_login_attempts).filter(AdminUser.id == user.id).scalar()
        )
        if attempts >= max_attempts:
            db.query(AdminUser).filter(
                AdminUser.id == user.id, AdminUser.locked_until.is_(None)
            ).update({AdminUser.locked_until: locked_until}, synchronize_session=False)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def clear_lock(db: Session, user: AdminUser) -> AdminUser:
        """Clear the lock and the failed-attempt counter"""
        user.failed_login_attempts = 0
        user.locked_until = None
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def record_successful_login(db: Session, user: AdminUser, now: datetime) -> AdminUser:
        """Reset lockout state and stamp the login time"""
        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login_at = now
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_password(db: Session, user: AdminUser, password_hash: str, now: datetime) -> AdminUser:
        """Replace the password hash"""
        user.password_hash = password_hash
        user.password_changed_at = now
        db.commit()
        db.refresh(user)
        return user

    # Password reset tokens
    @staticmethod
    def create_reset_token(
        db: Session, user: AdminUser, token_hash: str, expires_at: datetime, now: datetime
    ) -> PasswordResetToken:
        """Store a hashed password reset token"""
        reset_token = PasswordResetToken(
            user_id=user.id, token_hash=token_hash, expires_at=expires_at, created_at=now
        )
        db.add(reset_token)
        db.commit()
        db.refresh(reset_token)
        return reset_token

    @staticmethod
    def get_usable_reset_token(
        db: Session, token_hash: str, now: datetime
    ) -> Optional[PasswordResetToken]:
        """Get an unused, unexpired reset token by hash"""
        return (
            db.query(PasswordResetToken)
            .filter(
                PasswordResetToken.token_hash == token_hash,
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > now,
            )
            .first()
        )
