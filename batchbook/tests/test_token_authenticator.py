from __future__ import annotations

from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token, decode_token

pytestmark = pytest.mark.integration

from batchbook.core.auth.auth_service import revoke_token
from batchbook.core.auth.tokens import authenticate_token
from batchbook.core.errors import Expired, InvalidCredential, Unauthenticated


def test_valid_token_resolves_user(app, user_with_tokens):
    token = user_with_tokens["tokens"]["access_token"]
    assert authenticate_token(token) == user_with_tokens["user_id"]
    assert authenticate_token(f"Bearer {token}") == user_with_tokens["user_id"]


@pytest.mark.parametrize("token", [None, "", 42])
def test_missing_token(app, token):
    with pytest.raises(Unauthenticated) as info:
        authenticate_token(token)
    assert type(info.value) is Unauthenticated
    assert info.value.message == "No token provided."


def test_expired_token(app, user_with_tokens):
    token = create_access_token(identity=str(user_with_tokens["user_id"]), expires_delta=timedelta(seconds=-1))
    with pytest.raises(Expired):
        authenticate_token(token)


def test_tampered_token(app, user_with_tokens):
    token = user_with_tokens["tokens"]["access_token"]
    with pytest.raises(InvalidCredential):
        authenticate_token(token[:-3] + ("aaa" if not token.endswith("aaa") else "bbb"))


def test_refresh_token_is_not_accepted(app, user_with_tokens):
    with pytest.raises(InvalidCredential):
        authenticate_token(user_with_tokens["tokens"]["refresh_token"])


def test_revoked_token(app, user_with_tokens):
    token = user_with_tokens["tokens"]["access_token"]
    revoke_token(decode_token(token)["jti"], user_id=user_with_tokens["user_id"])
    with pytest.raises(InvalidCredential) as info:
        authenticate_token(token)
    assert info.value.message == "Token has been revoked."


def test_token_for_unknown_user(app):
    token = create_access_token(identity="424242")
    with pytest.raises(InvalidCredential) as info:
        authenticate_token(token)
    assert info.value.message == "User not found."
