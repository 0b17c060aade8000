"""Auth HTTP controllers (API only)."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session
from flask_jwt_extended import current_user, get_jwt, jwt_required
from pydantic import ValidationError

from batchbook.core.auth.auth_service import (
    authenticate_user,
    issue_access_token,
    issue_tokens,
    register_user,
    revoke_token,
)
from batchbook.core.auth.csrf import generate_csrf_token
from batchbook.core.auth.schemas import RegisterRequest
from batchbook.core.users.schemas import LoginRequest, serialize_user
from batchbook.core.utils.decorators import csrf_protected
from batchbook.core.utils.responses import validation_error_response
from batchbook.extensions import limiter

auth_bp = Blueprint("auth_api", __name__)


@auth_bp.post("/register")
@limiter.limit("5/minute")
def register():
    payload = request.get_json(silent=True) or {}
    try:
        data = RegisterRequest.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc, error="bad_request")
    try:
        result = register_user(
            data,
            auto_issue_tokens=current_app.config.get("AUTO_LOGIN_ON_REGISTER", True),
        )
    except ValueError as exc:
        code = str(exc)
        if code == "email_already_exists":
            return jsonify({"ok": False, "error": code}), 400
        return jsonify({"ok": False, "error": "registration_failed"}), 400

    resp = {"ok": True, "user": serialize_user(result["user"]).model_dump()}
    if "access_token" in result:
        resp.update(
            {
                "access_token": result["access_token"],
                "refresh_token": result.get("refresh_token"),
                "csrf_token": generate_csrf_token(),
            }
        )
    return jsonify(resp), 201


@auth_bp.post("/login")
@limiter.limit("10/minute")
def login():
    # Login is stateless even if a stale Flask session cookie is present.
    session.clear()
    payload = request.get_json(silent=True) or {}
    try:
        data = LoginRequest.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc, error="bad_request")
    user = authenticate_user(data.email, data.password)
    if not user:
        return jsonify({"ok": False, "error": "invalid_credentials"}), 401
    tokens = issue_tokens(user)
    return jsonify(
        {
            "ok": True,
            **tokens,
            "csrf_token": generate_csrf_token(),
            "user": serialize_user(user).model_dump(),
        }
    )


@auth_bp.post("/refresh")
@jwt_required(refresh=True)
@limiter.limit("30/minute")
def refresh():
    return jsonify({"ok": True, "access_token": issue_access_token(current_user)})


@auth_bp.post("/logout")
@jwt_required(refresh=True)
@csrf_protected
def logout():
    revoke_token(get_jwt().get("jti"), user_id=current_user.id)
    return jsonify({"ok": True})


@auth_bp.get("/me")
@jwt_required()
def me():
    return jsonify({"ok": True, "user": serialize_user(current_user).model_dump()})
