"""Auth service - Login, lockout policy and token handling for admin users

Lockout state machine (per account):

    Unlocked(n < MAX) --bad password--> Unlocked(n + 1)
    Unlocked(MAX - 1) --bad password--> Locked(until = now + LOCKOUT)
    Locked(until)     --any attempt before until--> AccountLocked
    Locked(until)     --any attempt at/after until--> counter and lock cleared,
                                                      attempt evaluated as Unlocked(0)
    any state         --good password while not locked--> Unlocked(0)
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from ... import config
from ...errors import (
    AccountLocked,
    InvalidCredentials,
    InvalidCurrentPassword,
    InvalidResetToken,
    InvalidToken,
    TokenExpired,
    UserNotFound,
)
from ...models import AdminUser, utcnow
from ...security_utils import (
    create_access_token,
    decode_access_token,
    generate_secure_token,
    hash_password,
    hash_token,
    log_security_event,
    mask_email,
    verify_password,
)
from .repository import AdminUserRepository

logger = logging.getLogger(__name__)

REMEMBER_ME_EXPIRY = timedelta(days=30)
DEFAULT_EXPIRY = timedelta(hours=24)

LOCKED_MESSAGE = "Too many failed attempts. Account locked for {minutes} minutes."
RESET_REQUESTED_MESSAGE = (
    "If an account with that email exists, password reset instructions have been sent."
)


def token_claims(user: AdminUser) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "firstName": user.first_name,
        "lastName": user.last_name,
    }


class AuthService:
    """Service layer for admin authentication"""

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utcnow,
        max_failed_attempts: int = config.MAX_FAILED_LOGIN_ATTEMPTS,
        lockout_minutes: int = config.ACCOUNT_LOCKOUT_MINUTES,
    ):
        self.db = db
        self.repo = AdminUserRepository()
        self.clock = clock
        self.max_failed_attempts = max_failed_attempts
        self.lockout_minutes = lockout_minutes

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(
        self, email: str, password: str, remember_me: bool = False, ip_address: Optional[str] = None
    ) -> tuple[str, AdminUser, str]:
        """
        Authenticate an admin user.

        Returns:
            (token, user, expires_in) where expires_in is "24h" or "30d"

        Raises:
            InvalidCredentials: unknown email or wrong password (also on the
                attempt that triggers the lock)
            AccountLocked: the account is locked
        """
        user = self.repo.get_active_by_email(self.db, email, for_update=True)
        if not user:
            logger.info(f"Failed login attempt for non-existent user: {mask_email(email)}")
            log_security_event("login_failed", ip_address=ip_address, details={"reason": "unknown_user"})
            raise InvalidCredentials()

        now = self.clock()

        if user.locked_until is not None:
            if now < user.locked_until:
                minutes_remaining = max(1, math.ceil((user.locked_until - now).total_seconds() / 60))
                log_security_event(
                    "login_blocked",
                    user_id=user.id,
                    ip_address=ip_address,
                    details={"minutes_remaining": minutes_remaining},
                )
                raise AccountLocked(minutes_remaining)

            # Lock has expired - start from a clean slate
            logger.info(f"🔓 Lock expired for user {user.id}, resetting failed attempts")
            self.repo.clear_lock(self.db, user)

        if not verify_password(password, user.password_hash):
            self._register_failed_attempt(user, now, ip_address)

        user = self.repo.record_successful_login(self.db, user, now)

        expires_delta = REMEMBER_ME_EXPIRY if remember_me else DEFAULT_EXPIRY
        token = create_access_token(token_claims(user), expires_delta)

        logger.info(f"Successful login for user: {mask_email(user.email)}")
        log_security_event("login_success", user_id=user.id, ip_address=ip_address)

        return token, user, "30d" if remember_me else "24h"

    def _register_failed_attempt(
        self, user: AdminUser, now: datetime, ip_address: Optional[str]
    ) -> None:
        was_locked = user.locked_until is not None
        user = self.repo.record_failed_login(
            self.db,
            user,
            self.max_failed_attempts,
            now + timedelta(minutes=self.lockout_minutes),
        )
        attempts = user.failed_login_attempts
        logger.info(f"Failed login attempt for user: {mask_email(user.email)}, attempts: {attempts}")

        if user.locked_until is not None:
            if not was_locked:
                logger.warning(f"🔒 Account {user.id} locked until {user.locked_until.isoformat()}")
                log_security_event(
                    "account_locked",
                    user_id=user.id,
                    ip_address=ip_address,
                    details={"attempts": attempts, "locked_until": user.locked_until.isoformat()},
                )
            raise InvalidCredentials(LOCKED_MESSAGE.format(minutes=self.lockout_minutes))

        log_security_event(
            "login_failed", user_id=user.id, ip_address=ip_address, details={"attempts": attempts}
        )
        raise InvalidCredentials()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode a token, mapping library errors onto API errors"""
        try:
            return decode_access_token(token)
        except ExpiredSignatureError as e:
            raise TokenExpired() from e
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise InvalidToken() from e

    def verify_token(self, token: str) -> tuple[AdminUser, dict[str, Any]]:
        """
        Validate a token and re-load its account.

        The account is fetched on every call so deactivated users lose
        access immediately, without a token blacklist.
        """
        payload = self.decode_token(token)

        user_id = payload.get("id")
        if not isinstance(user_id, int):
            logger.warning("Token missing user id claim")
            raise InvalidToken()

        user = self.repo.get_active_by_id(self.db, user_id)
        if not user:
            logger.warning(f"Token presented for missing or inactive user {user_id}")
            raise UserNotFound()

        return user, payload

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def change_password(self, user: AdminUser, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            log_security_event("password_change_failed", user_id=user.id)
            raise InvalidCurrentPassword()

        self.repo.update_password(self.db, user, hash_password(new_password), self.clock())
        logger.info(f"Password changed for user ID: {user.id}")
        log_security_event("password_changed", user_id=user.id)

    def request_password_reset(self, email: str, ip_address: Optional[str] = None) -> str:
        """
        Create a reset token for an active account.

        Always returns the same message so callers can't probe which emails
        exist. Token delivery is not handled here.
        """
        user = self.repo.get_active_by_email(self.db, email)
        if not user:
            logger.info(f"Password reset requested for unknown email: {mask_email(email)}")
            return RESET_REQUESTED_MESSAGE

        now = self.clock()
        raw_token = generate_secure_token()
        self.repo.create_reset_token(
            self.db,
            user,
            hash_token(raw_token),
            now + timedelta(minutes=config.PASSWORD_RESET_TOKEN_MINUTES),
            now,
        )

        logger.info(f"Password reset requested for: {mask_email(user.email)}")
        if config.ENVIRONMENT == "development":
            logger.info(f"Password reset token for user {user.id}: {raw_token}")
        log_security_event("password_reset_requested", user_id=user.id, ip_address=ip_address)

        return RESET_REQUESTED_MESSAGE

    def reset_password(self, token: str, new_password: str) -> AdminUser:
        now = self.clock()
        reset_token = self.repo.get_usable_reset_token(self.db, hash_token(token), now)
        if not reset_token or not reset_token.user or not reset_token.user.is_active:
            raise InvalidResetToken()

        user = reset_token.user
        reset_token.used_at = now
        user.password_hash = hash_password(new_password)
        user.password_changed_at = now
        user.failed_login_attempts = 0
        user.locked_until = None
        self.db.commit()
        self.db.refresh(user)

        log_security_event("password_reset", user_id=user.id)
        return user

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def list_admin_users(self) -> list[AdminUser]:
        return self.repo.list_users(self.db)
