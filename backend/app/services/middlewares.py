"""FastAPI dependencies guarding the routers."""
from enum import Enum
from typing import Callable, Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import UserClaims, UserRole
from app.repositories.middlewares_repository import MiddlewaresRepository
from app.services.auth import TokenKind, parse_token
from app.utils.converter import roles_intersect
from app.utils.errors import AppError, ErrorKind, api_errors
from app.utils.logger import logger

bearer_scheme = HTTPBearer(auto_error=False)


class MiddlewareCode(Enum):
    ROUTER_CHECK = "middleware-001"
    JWT_AUTH = "middleware-002"
    PARAMS_CHECK = "middleware-003"
    AUTHORIZE = "middleware-004"
    API_KEY = "middleware-005"
    ADMIN_TOKEN = "middleware-006"


def get_middlewares_repository(db: Session = Depends(get_db)) -> MiddlewaresRepository:
    return MiddlewaresRepository(db)


def jwt_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    repo: MiddlewaresRepository = Depends(get_middlewares_repository),
) -> UserClaims:
    with api_errors(MiddlewareCode.JWT_AUTH):
        if credentials is None or not credentials.credentials:
            raise AppError(ErrorKind.UNAUTHORIZED, "no authorization header")
        token = credentials.credentials
        payload = parse_token(TokenKind.ACCESS, token)
        if payload.claims is None:
            raise AppError(ErrorKind.TOKEN_INVALID, "invalid token")
        # A valid signature is not enough: the session must still hold this token.
        if not repo.find_access_token(payload.claims.id, token):
            raise AppError(ErrorKind.UNAUTHORIZED, "no permission to access")
        return payload.claims


def params_check(user_id: str, claims: UserClaims = Depends(jwt_auth)) -> UserClaims:
    with api_errors(MiddlewareCode.PARAMS_CHECK):
        if claims.role != UserRole.ADMIN and claims.id != user_id:
            raise AppError(ErrorKind.FORBIDDEN, "params are not matched")
    return claims


def authorize(*role_ids: UserRole) -> Callable[..., UserClaims]:
    """Build a dependency that admits callers holding any of ``role_ids``."""
    expected = [int(r) for r in role_ids]

    def dependency(
        claims: UserClaims = Depends(jwt_auth),
        repo: MiddlewaresRepository = Depends(get_middlewares_repository),
    ) -> UserClaims:
        with api_errors(MiddlewareCode.AUTHORIZE):
            roles = repo.find_role()
            if not roles_intersect(expected, claims.role, len(roles)):
                logger.warning(f"User {claims.id} role={claims.role} denied, expected one of {expected}")
                raise AppError(ErrorKind.FORBIDDEN, "no permission to access")
        return claims

    return dependency


def api_key_auth(x_api_key: Optional[str] = Header(None, alias="X-Api-Key")) -> None:
    with api_errors(MiddlewareCode.API_KEY):
        if not x_api_key:
            raise AppError(ErrorKind.UNAUTHORIZED, "apikey is required")
        parse_token(TokenKind.API_KEY, x_api_key)


def admin_token_auth(x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token")) -> None:
    with api_errors(MiddlewareCode.ADMIN_TOKEN):
        if not x_admin_token:
            raise AppError(ErrorKind.UNAUTHORIZED, "admin token is required")
        parse_token(TokenKind.ADMIN, x_admin_token)
