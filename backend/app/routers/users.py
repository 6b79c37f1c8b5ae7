from enum import Enum

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import (
    AdminTokenResponse,
    User,
    UserClaims,
    UserCredential,
    UserPassport,
    UserRefreshCredential,
    UserRegisterReq,
    UserRemoveCredential,
    UserRole,
)
from app.repositories.users_repository import UsersRepository
from app.services.middlewares import admin_token_auth, authorize, jwt_auth, params_check
from app.services.user_service import UserService
from app.utils.errors import api_errors

router = APIRouter(prefix="/v1/users", tags=["users"])


class UsersCode(Enum):
    SIGNUP_CUSTOMER = "users-001"
    SIGNUP_ADMIN = "users-002"
    SIGNIN = "users-003"
    REFRESH = "users-004"
    SIGNOUT = "users-005"
    PROFILE = "users-006"
    ADMIN_TOKEN = "users-007"


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(UsersRepository(db))


@router.post("/signup", response_model=UserPassport, status_code=status.HTTP_201_CREATED)
def signup_customer(req: UserRegisterReq, service: UserService = Depends(get_user_service)):
    with api_errors(UsersCode.SIGNUP_CUSTOMER):
        return service.insert_customer(req)


@router.post(
    "/signup-admin",
    response_model=UserPassport,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(admin_token_auth)],
)
def signup_admin(req: UserRegisterReq, service: UserService = Depends(get_user_service)):
    with api_errors(UsersCode.SIGNUP_ADMIN):
        return service.insert_admin(req)


@router.post("/signin", response_model=UserPassport)
def signin(req: UserCredential, service: UserService = Depends(get_user_service)):
    with api_errors(UsersCode.SIGNIN):
        return service.get_passport(req)


@router.post("/refresh", response_model=UserPassport)
def refresh_passport(req: UserRefreshCredential, service: UserService = Depends(get_user_service)):
    with api_errors(UsersCode.REFRESH):
        return service.refresh_passport(req.refresh_token)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
def signout(
    req: UserRemoveCredential,
    claims: UserClaims = Depends(jwt_auth),
    service: UserService = Depends(get_user_service),
):
    with api_errors(UsersCode.SIGNOUT):
        service.delete_oauth(req.oauth_id, claims)


@router.get("/admin/secret", response_model=AdminTokenResponse)
def generate_admin_token(
    _: UserClaims = Depends(authorize(UserRole.ADMIN)),
    service: UserService = Depends(get_user_service),
):
    with api_errors(UsersCode.ADMIN_TOKEN):
        return service.generate_admin_token()


@router.get("/{user_id}", response_model=User)
def get_profile(user_id: str, _: UserClaims = Depends(params_check), service: UserService = Depends(get_user_service)):
    with api_errors(UsersCode.PROFILE):
        return service.get_profile(user_id)
