from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from agencydesk.core.exceptions import UnauthorizedException
from agencydesk.core.principal import Principal
from agencydesk.core.security import decode_jwt, resolve_principal
from agencydesk.database import get_db

security = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Principal:
    """
    FastAPI dependency to validate JWT and resolve the calling principal.

    Flow:
    1. Extract token from Authorization: Bearer <token>
    2. Validate JWT using shared SECRET_KEY
    3. Look up the admin, owner or team membership behind 'sub'
    4. Return the Principal for use in services

    Raises:
        HTTPException 401: If token missing, invalid or expired, or the
            account cannot act as any principal
    """
    try:
        if credentials is None:
            raise UnauthorizedException("Not authenticated")
        payload = decode_jwt(credentials.credentials)
        return resolve_principal(payload, db)

    except UnauthorizedException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
