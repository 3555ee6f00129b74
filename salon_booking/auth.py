import logging
from collections.abc import Sequence
from typing import Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .domain.auth.service import AuthService
from .errors import AppError, InsufficientPermissions, TokenRequired
from .models import ADMIN_ROLES, ROLE_SUPER_ADMIN, AdminUser
from .rate_limiter import get_client_ip
from .security_utils import log_security_event

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reports TOKEN_REQUIRED instead of a bare 403
security = HTTPBearer(auto_error=False)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: AuthService = Depends(get_auth_service),
) -> AdminUser:
    """Get the admin user behind the bearer token, re-checked against the database"""
    if not credentials or not credentials.credentials:
        logger.warning(f"❌ No credentials provided for {request.method} {request.url.path}")
        raise TokenRequired()

    user, payload = service.verify_token(credentials.credentials)

    # Available to handlers that report token expiry
    request.state.token_payload = payload
    request.state.user = user
    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: AuthService = Depends(get_auth_service),
) -> Optional[AdminUser]:
    """Like get_current_user, but anonymous or invalid tokens yield None"""
    if not credentials or not credentials.credentials:
        return None
    try:
        user, _ = service.verify_token(credentials.credentials)
    except AppError:
        return None
    request.state.user = user
    return user


def require_role(roles: Union[str, Sequence[str]]):
    """
    Create a dependency that only lets the given role(s) through

    Example usage:
        @router.get("/users", dependencies=[Depends(require_role("super_admin"))])
    """
    allowed = (roles,) if isinstance(roles, str) else tuple(roles)

    async def role_checker(user: AdminUser = Depends(get_current_user)) -> AdminUser:
        if user.role not in allowed:
            logger.warning(f"⚠️ User {user.id} with role {user.role} denied, requires {allowed}")
            raise InsufficientPermissions(f"Access denied. Required role: {' or '.join(allowed)}")
        return user

    return role_checker


require_admin = require_role(ADMIN_ROLES)
require_super_admin = require_role(ROLE_SUPER_ADMIN)


def log_auth_event(event: str):
    """Create a dependency that writes an audit line for the authenticated request"""

    async def audit(request: Request, user: AdminUser = Depends(get_current_user)) -> None:
        log_security_event(
            event,
            user_id=user.id,
            ip_address=get_client_ip(request),
            details={"role": user.role, "route": f"{request.method} {request.url.path}"},
        )

    return audit


def protect_admin_route(roles: Union[str, Sequence[str]] = ADMIN_ROLES) -> list:
    """Dependency stack for admin routers: token, role, audit log"""
    return [Depends(require_role(roles)), Depends(log_auth_event("admin_route_access"))]
