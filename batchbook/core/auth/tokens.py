"""Bearer token authenticator shared by the HTTP layer and the realtime gateway.

The HTTP path collapses every failure into a generic 401 (see the JWT loaders
registered in the app factory). The realtime path surfaces the specific reason
so socket clients can tell an expired session from a bad token.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import jwt as pyjwt
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException

from batchbook.core.auth.auth_service import is_token_revoked
from batchbook.core.errors import Expired, InvalidCredential, Unauthenticated
from batchbook.core.users.models import User
from batchbook.extensions import db

logger = logging.getLogger(__name__)


def authenticate_token(token: Optional[Any]) -> int:
    """Resolve an access token to a user id.

    Raises:
        Unauthenticated: token missing or not a string
        Expired: signature valid but past its expiry
        InvalidCredential: bad signature/format, wrong token type, revoked,
            or the user no longer exists
    """
    if not token or not isinstance(token, str):
        raise Unauthenticated("No token provided.")
    if token.lower().startswith("bearer "):
        token = token[7:].strip()

    try:
        decoded = decode_token(token)
    except pyjwt.ExpiredSignatureError as exc:
        raise Expired("Token has expired.") from exc
    except (pyjwt.InvalidTokenError, JWTExtendedException) as exc:
        logger.debug("Token rejected: %s", exc)
        raise InvalidCredential("Invalid token.") from exc

    if decoded.get("type") != "access":
        raise InvalidCredential("Invalid token.")
    if is_token_revoked(decoded.get("jti")):
        raise InvalidCredential("Token has been revoked.")

    try:
        user_id = int(decoded.get("sub"))
    except (TypeError, ValueError) as exc:
        raise InvalidCredential("Invalid token.") from exc

    if db.session.get(User, user_id) is None:
        raise InvalidCredential("User not found.")
    return user_id
