import base64
import itertools
import json
import time

import pytest

from app.config import settings
from app.models.user import UserClaims
from app.services.auth import (
    AccessToken,
    TokenKind,
    get_password_hash,
    new_auth,
    parse_token,
    repeat_token,
    verify_password,
)
from app.utils.errors import AppError, ErrorKind

CLAIMS = UserClaims(id="U1", role=1)


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


def test_access_token_round_trip():
    token = new_auth(TokenKind.ACCESS, CLAIMS).sign_token()
    payload = parse_token(TokenKind.ACCESS, token)

    assert payload.claims == CLAIMS
    assert payload.iss == settings.JWT_ISSUER
    assert payload.sub == "access-token"
    assert payload.exp - payload.iat == settings.JWT_ACCESS_EXPIRES
    assert payload.nbf == payload.iat


@pytest.mark.parametrize("signed_as,checked_as", list(itertools.permutations(list(TokenKind), 2)))
def test_token_of_one_kind_never_verifies_as_another(signed_as, checked_as):
    token = new_auth(signed_as, CLAIMS).sign_token()
    with pytest.raises(AppError) as exc:
        parse_token(checked_as, token)
    assert exc.value.kind == ErrorKind.TOKEN_INVALID


def test_expired_and_malformed_are_distinct():
    expired = AccessToken(settings, CLAIMS, expires_at=int(time.time()) - 60).sign_token()
    with pytest.raises(AppError) as exc:
        parse_token(TokenKind.ACCESS, expired)
    assert exc.value.kind == ErrorKind.TOKEN_EXPIRED

    with pytest.raises(AppError) as exc:
        parse_token(TokenKind.ACCESS, "definitely.not.a-jwt")
    assert exc.value.kind == ErrorKind.TOKEN_INVALID


def test_unsigned_token_is_rejected():
    payload = new_auth(TokenKind.ACCESS, CLAIMS).payload.model_dump(mode="json")
    token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64(payload)}."
    with pytest.raises(AppError) as exc:
        parse_token(TokenKind.ACCESS, token)
    assert exc.value.kind == ErrorKind.TOKEN_INVALID


def test_repeat_token_keeps_original_expiry():
    original = parse_token(TokenKind.REFRESH, new_auth(TokenKind.REFRESH, CLAIMS).sign_token())
    repeated = parse_token(TokenKind.REFRESH, repeat_token(CLAIMS, original.exp))
    assert repeated.exp == original.exp
    assert repeated.claims == CLAIMS


def test_admin_and_api_key_tokens_carry_no_claims():
    admin = parse_token(TokenKind.ADMIN, new_auth(TokenKind.ADMIN, CLAIMS).sign_token())
    api_key = parse_token(TokenKind.API_KEY, new_auth(TokenKind.API_KEY).sign_token())
    assert admin.claims is None
    assert api_key.claims is None
    assert admin.exp - admin.iat == 300


def test_password_hash_round_trip():
    encoded = get_password_hash("s3cret")
    assert encoded.startswith("pbkdf2_sha256$")
    assert verify_password("s3cret", encoded)
    assert not verify_password("wrong", encoded)
    assert not verify_password("s3cret", "garbage")
