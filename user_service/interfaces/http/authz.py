import secrets

from fastapi import Depends, Header, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from ...application.errors import ForbiddenError, UnauthorizedError
from ...config import settings
from ...domain.entities import UserRole
from ...infrastructure.security import decode_token

bearer = HTTPBearer(auto_error=False)

def get_claims(request: Request, creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> dict:
    if creds is None:
        raise UnauthorizedError("Missing bearer token")
    try:
        claims = decode_token(creds.credentials)
    except JWTError:
        raise UnauthorizedError("Invalid token")
    # для журнала запросов
    request.state.user_id = str(claims["sub"])
    return claims

def get_current_user_id(claims: dict = Depends(get_claims)) -> int:
    try:
        return int(claims["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token")

def require_roles(*roles: UserRole):
    allowed = {r.value for r in roles}

    def guard(claims: dict = Depends(get_claims)) -> dict:
        if claims.get("role") not in allowed:
            raise ForbiddenError("Forbidden resource")
        return claims
    return guard

require_moderator = require_roles(UserRole.MODERATOR)

def require_service_token(x_service_token: str | None = Header(default=None)) -> None:
    if not x_service_token or not secrets.compare_digest(x_service_token, settings.SERVICE_TOKEN):
        raise UnauthorizedError("Invalid or missing service token")
