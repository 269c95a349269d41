from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.auth.schemas import AdminPrincipal, StudentPrincipal
from admission_portal.auth.services import resolve_admin_principal, resolve_student_principal
from admission_portal.core.enums import ErrorKind
from admission_portal.core.exceptions import AuthError, ServiceError
from admission_portal.db.session import get_db

# auto_error=False: a missing header must answer 401 with our own error body
bearer_scheme = HTTPBearer(auto_error=False)


def _require_token(credentials: Optional[HTTPAuthorizationCredentials], message: str) -> str:
    if credentials is None or not credentials.credentials:
        error = AuthError(message, ErrorKind.MISSING_TOKEN)
        raise HTTPException(
            status_code=error.status_code,
            detail=error.to_detail(),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_student(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> StudentPrincipal:
    """Student gate: resolve the calling user from a bearer token carrying a userId claim."""
    token = _require_token(credentials, "Access token required")
    try:
        return await resolve_student_principal(db, token)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> AdminPrincipal:
    """Admin gate: independent of the student gate; only tokens carrying an adminId claim pass."""
    token = _require_token(credentials, "Admin access token required")
    try:
        return await resolve_admin_principal(db, token)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
