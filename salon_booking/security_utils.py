"""
Security Utilities
Password hashing, signed access tokens, reset tokens and audit logging
"""

import hashlib
import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

# Access tokens
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from . import config

logger = logging.getLogger(__name__)

ALGORITHM = config.JWT_ALGORITHM

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS
)


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def check_password_strength(password: str) -> dict[str, Any]:
    """
    Check password strength and return detailed feedback

    Returns:
        dict with 'score' (0-4), 'strength' (weak/fair/good/strong),
        'feedback' (list of suggestions), and 'is_valid' (bool)
    """
    score = 0
    feedback = []

    if len(password) < 8:
        feedback.append("Password should be at least 8 characters long")
    elif len(password) >= 12:
        score += 2
    else:
        score += 1

    if re.search(r"[a-z]", password) and re.search(r"[A-Z]", password):
        score += 1
    else:
        feedback.append("Mix upper and lower case letters")

    if re.search(r"\d", password):
        score += 1
    else:
        feedback.append("Add numbers")

    if re.search(r'[!@#$%^&*(),.?":{}|<>]', password):
        score += 1
    else:
        feedback.append("Add special characters")

    common_passwords = ["password", "123456", "qwerty", "admin", "letmein", "salon123"]
    if password.lower() in common_passwords:
        score = 0
        feedback.append("This is a commonly used password - choose something unique")

    if score <= 1:
        strength = "weak"
    elif score == 2:
        strength = "fair"
    elif score == 3:
        strength = "good"
    else:
        strength = "strong"

    return {
        "score": min(score, 4),
        "strength": strength,
        "feedback": feedback,
        "is_valid": len(password) >= 8 and score >= 3,
    }


# ============================================================================
# ACCESS TOKENS
# ============================================================================


def create_access_token(data: dict[str, Any], expires_delta: timedelta) -> str:
    """
    Create a signed access token

    Args:
        data: Claims to embed in the token
        expires_delta: Lifetime of the token
    """
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update(
        {
            "iat": now,
            "exp": now + expires_delta,
            "iss": config.JWT_ISSUER,
            "aud": config.JWT_AUDIENCE,
        }
    )
    return jose_jwt.encode(to_encode, config.JWT_SECRET, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token (signature, expiry, issuer, audience)

    Raises:
        jose.ExpiredSignatureError: token has expired
        jose.JWTError: any other validation failure
    """
    return jose_jwt.decode(
        token,
        config.JWT_SECRET,
        algorithms=[ALGORITHM],
        audience=config.JWT_AUDIENCE,
        issuer=config.JWT_ISSUER,
    )


# ============================================================================
# RESET TOKENS
# ============================================================================


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token"""
    return secrets.token_urlsafe(length)


def hash_token(token: str) -> str:
    """Hash a reset token for storage; only the hash is persisted"""
    return hashlib.sha256(token.encode()).hexdigest()


# ============================================================================
# AUDIT LOGGING
# ============================================================================


def log_security_event(
    event_type: str,
    user_id: Optional[int] = None,
    ip_address: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
):
    """
    Log security-related events for audit trail

    Args:
        event_type: Type of security event (login_success, login_failed, account_locked, ...)
        user_id: Admin user identifier
        ip_address: Client IP address
        details: Additional event details
    """
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "user_id": user_id,
        "ip_address": ip_address,
        "details": details or {},
    }
    logger.info(f"SECURITY_EVENT: {log_entry}")


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def mask_email(email: str) -> str:
    """Mask email for logs: jo***@gm***.com"""
    if not email or "@" not in email:
        return "***@***.***"
    local, domain = email.split("@", 1)
    domain_parts = domain.split(".")
    masked_local = f"{local[:2]}***" if len(local) > 2 else f"{local[:1]}***"
    masked_domain = (
        f"{domain_parts[0][:2]}***" if len(domain_parts[0]) > 2 else f"{domain_parts[0][:1]}***"
    )
    return f"{masked_local}@{masked_domain}.{domain_parts[-1]}"
