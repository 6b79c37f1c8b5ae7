"""Password hashing and the signed token engine.

Four token kinds exist (access, refresh, admin, api key). Each kind has its
own signing secret, subject tag, audience and lifetime; a token of one kind
never verifies as another.
"""
from __future__ import annotations

import binascii
import hashlib
import hmac
import os
import time
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Type

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from app.config import Settings, settings
from app.models.user import UserClaims
from app.utils.errors import AppError, ErrorKind
from app.utils.logger import logger

# Password storage format: "pbkdf2_sha256$<iterations>$<salt_hex>$<hash_hex>".
_PBKDF2_ALGO_PREFIX = "pbkdf2_sha256"
_PBKDF2_ITERATIONS = 100_000
_PBKDF2_SALT_BYTES = 16

SIGNING_ALGORITHM = "HS256"
# Verification accepts the HMAC family only.
ALLOWED_ALGORITHMS = ["HS256", "HS384", "HS512"]

ADMIN_TOKEN_SECONDS = 300
API_KEY_SECONDS = 2 * 365 * 24 * 60 * 60


def get_password_hash(password: str) -> str:
    """Return a PBKDF2-SHA256 hash string for the given password."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")

    salt = os.urandom(_PBKDF2_SALT_BYTES)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    salt_hex = binascii.hexlify(salt).decode("ascii")
    hash_hex = binascii.hexlify(dk).decode("ascii")
    return f"{_PBKDF2_ALGO_PREFIX}${_PBKDF2_ITERATIONS}${salt_hex}${hash_hex}"


def verify_password(password: str, encoded: str) -> bool:
    """Verify a password against a PBKDF2-SHA256 encoded hash.

    Returns False if the hash is malformed.
    """
    if not encoded:
        return False
    try:
        prefix, iter_str, salt_hex, hash_hex = encoded.split("$", 3)
        if prefix != _PBKDF2_ALGO_PREFIX:
            return False
        iterations = int(iter_str)
        salt = binascii.unhexlify(salt_hex.encode("ascii"))
        expected = binascii.unhexlify(hash_hex.encode("ascii"))
    except (ValueError, binascii.Error):
        return False

    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(dk, expected)


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    ADMIN = "admin"
    API_KEY = "apikey"


class TokenPayload(BaseModel):
    iss: str
    sub: str
    aud: List[str]
    exp: int
    nbf: int
    iat: int
    claims: Optional[UserClaims] = None


class AuthToken:
    """One signed token. Subclasses fix the kind-specific metadata."""

    kind: ClassVar[TokenKind]
    subject: ClassVar[str]
    audience: ClassVar[List[str]]

    def __init__(self, cfg: Settings, claims: Optional[UserClaims] = None, expires_at: Optional[int] = None):
        now = int(time.time())
        self.cfg = cfg
        self.payload = TokenPayload(
            iss=cfg.JWT_ISSUER,
            sub=self.subject,
            aud=list(self.audience),
            exp=expires_at if expires_at is not None else now + self.lifetime(cfg),
            nbf=now,
            iat=now,
            claims=claims,
        )

    @classmethod
    def secret(cls, cfg: Settings) -> str:
        raise NotImplementedError

    @classmethod
    def lifetime(cls, cfg: Settings) -> int:
        raise NotImplementedError

    def sign_token(self) -> str:
        return jwt.encode(self.payload.model_dump(mode="json"), self.secret(self.cfg), algorithm=SIGNING_ALGORITHM)


class AccessToken(AuthToken):
    kind = TokenKind.ACCESS
    subject = "access-token"
    audience = ["customer", "admin"]

    @classmethod
    def secret(cls, cfg: Settings) -> str:
        return cfg.JWT_SECRET_KEY

    @classmethod
    def lifetime(cls, cfg: Settings) -> int:
        return cfg.JWT_ACCESS_EXPIRES


class RefreshToken(AuthToken):
    kind = TokenKind.REFRESH
    subject = "refresh-token"
    audience = ["customer", "admin"]

    @classmethod
    def secret(cls, cfg: Settings) -> str:
        return cfg.JWT_REFRESH_KEY

    @classmethod
    def lifetime(cls, cfg: Settings) -> int:
        return cfg.JWT_REFRESH_EXPIRES


class AdminToken(AuthToken):
    kind = TokenKind.ADMIN
    subject = "admin-token"
    audience = ["admin"]

    @classmethod
    def secret(cls, cfg: Settings) -> str:
        return cfg.JWT_ADMIN_KEY

    @classmethod
    def lifetime(cls, cfg: Settings) -> int:
        return ADMIN_TOKEN_SECONDS


class ApiKeyToken(AuthToken):
    kind = TokenKind.API_KEY
    subject = "api-key"
    audience = ["admin", "customer"]

    @classmethod
    def secret(cls, cfg: Settings) -> str:
        return cfg.JWT_API_KEY

    @classmethod
    def lifetime(cls, cfg: Settings) -> int:
        return API_KEY_SECONDS


TOKEN_TYPES: Dict[TokenKind, Type[AuthToken]] = {
    TokenKind.ACCESS: AccessToken,
    TokenKind.REFRESH: RefreshToken,
    TokenKind.ADMIN: AdminToken,
    TokenKind.API_KEY: ApiKeyToken,
}


def new_auth(kind: TokenKind, claims: Optional[UserClaims] = None, cfg: Settings = settings) -> AuthToken:
    token_type = TOKEN_TYPES.get(kind)
    if token_type is None:
        raise AppError(ErrorKind.INTERNAL, "invalid token type")
    # Admin tokens and API keys carry no user claims.
    if kind in (TokenKind.ADMIN, TokenKind.API_KEY):
        claims = None
    return token_type(cfg, claims)


def repeat_token(claims: UserClaims, expires_at: int, cfg: Settings = settings) -> str:
    """Sign a refresh token that keeps an earlier token's expiry instant."""
    return RefreshToken(cfg, claims, expires_at=expires_at).sign_token()


def parse_token(kind: TokenKind, token: str, cfg: Settings = settings) -> TokenPayload:
    """Verify ``token`` as a token of ``kind``.

    Raises AppError(TOKEN_EXPIRED) for an expired token and
    AppError(TOKEN_INVALID) for anything else that fails verification.
    """
    token_type = TOKEN_TYPES[kind]
    try:
        data = jwt.decode(
            token,
            token_type.secret(cfg),
            algorithms=ALLOWED_ALGORITHMS,
            audience=token_type.audience[0],
            issuer=cfg.JWT_ISSUER,
            subject=token_type.subject,
        )
    except ExpiredSignatureError:
        raise AppError(ErrorKind.TOKEN_EXPIRED, "token expired")
    except JWTError as e:
        logger.warning(f"JWT validation error kind={kind.value}: {e}")
        raise AppError(ErrorKind.TOKEN_INVALID, "invalid token")
    return TokenPayload.model_validate(data)
