from pydantic import BaseModel, EmailStr
from enum import IntEnum
from typing import Optional


class UserRole(IntEnum):
    CUSTOMER = 1
    ADMIN = 2


class User(BaseModel):
    id: str
    email: str
    username: str
    role_id: int


class UserRegisterReq(BaseModel):
    email: EmailStr
    username: str
    password: str


class UserCredential(BaseModel):
    email: str
    password: str


class UserCredentialCheck(BaseModel):
    id: str
    email: str
    password: str
    username: str
    role_id: int


class UserToken(BaseModel):
    id: Optional[str] = None
    access_token: str
    refresh_token: str


class UserPassport(BaseModel):
    user: User
    token: Optional[UserToken] = None


class UserClaims(BaseModel):
    id: str
    role: int


class UserRefreshCredential(BaseModel):
    refresh_token: str


class UserRemoveCredential(BaseModel):
    oauth_id: str


class Oauth(BaseModel):
    id: str
    user_id: str


class Role(BaseModel):
    id: int
    title: str


class AdminTokenResponse(BaseModel):
    token: str
