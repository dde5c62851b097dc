import logging

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from agencydesk.config import settings
from agencydesk.core.exceptions import UnauthorizedException
from agencydesk.core.principal import (
    AdminPrincipal,
    OwnerPrincipal,
    Principal,
    TeamMemberPrincipal,
)
from agencydesk.models.admin import AdminStatus
from agencydesk.models.user import UserStatus
from agencydesk.repositories.team_member_repository import TeamMemberRepository
from agencydesk.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

ADMIN_TOKEN = "admin"
USER_TOKEN = "user"


def decode_jwt(token: str) -> dict:
    """
    Decode and validate JWT token using shared SECRET_KEY.

    Args:
        token: JWT access token from Authorization header

    Returns:
        Decoded token payload with 'sub' (account id), 'exp' and 'type'

    Raises:
        UnauthorizedException: If token invalid, expired, or malformed
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise UnauthorizedException(f"Invalid token: {str(e)}")

    # jose validates 'exp' when present but does not require it
    if payload.get("exp") is None:
        raise UnauthorizedException("Token missing expiration")

    if payload.get("sub") is None:
        raise UnauthorizedException("Token missing user identifier")

    if payload.get("type", USER_TOKEN) not in (ADMIN_TOKEN, USER_TOKEN):
        raise UnauthorizedException("Token has unknown account type")

    return payload


def resolve_principal(payload: dict, db: Session) -> Principal:
    """
    Turn verified token claims into a principal.

    - ``type=admin``: an active platform admin
    - ``type=user`` and ``is_owner``: the owner (tenant root)
    - other users: the team membership matched by the account's email;
      inactive memberships still resolve and are denied at check time

    Raises:
        UnauthorizedException: For unknown, banned or inactive accounts and
            for non-owner users without a team membership
    """
    try:
        account_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedException("Token has malformed user identifier")

    users = UserRepository(db)

    if payload.get("type", USER_TOKEN) == ADMIN_TOKEN:
        admin = users.get_admin_by_id(account_id)
        if admin is None:
            raise UnauthorizedException("Admin not found")
        if admin.status != AdminStatus.ACTIVE:
            raise UnauthorizedException("Admin account is not active")
        return AdminPrincipal(id=admin.id)

    user = users.get_by_id(account_id)
    if user is None:
        raise UnauthorizedException("User not found")
    if user.status == UserStatus.BANNED:
        raise UnauthorizedException("User account is banned")
    if user.is_owner:
        return OwnerPrincipal(id=user.id)

    member = TeamMemberRepository(db).get_for_login(user.email)
    if member is None:
        logger.info("User %s has no team membership", user.id)
        raise UnauthorizedException("User is not a member of any team")
    return TeamMemberPrincipal(
        id=member.id,
        user_id=user.id,
        managed_by=member.managed_by,
        role_id=member.role_id,
        status=member.status,
    )
