"""User controllers (API only)."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import current_user, jwt_required
from pydantic import ValidationError

from batchbook.core.auth.auth_service import issue_access_token
from batchbook.core.errors import ValidationFailed
from batchbook.core.users.models import ROLE_ADMIN
from batchbook.core.users.schemas import UserUpdateRequest, serialize_user
from batchbook.core.users.services import delete_user_cascade, get_user, list_users, update_user
from batchbook.core.utils.decorators import csrf_protected, require_roles
from batchbook.core.utils.responses import not_found_response, validation_error_response

user_api_bp = Blueprint("user_api", __name__)


@user_api_bp.get("/profile")
@jwt_required()
def api_profile():
    return jsonify({"ok": True, "user": serialize_user(current_user).model_dump()})


@user_api_bp.route("/profile", methods=["PUT", "PATCH"])
@jwt_required()
@csrf_protected
def api_update_profile():
    payload = request.get_json(silent=True) or {}
    try:
        data = UserUpdateRequest.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)
    try:
        user = update_user(current_user._get_current_object(), data)
    except ValidationFailed as exc:
        return jsonify({"ok": False, "error": exc.code, "message": exc.message}), 400
    # Fresh token so clients pick up any changed claims.
    return jsonify(
        {
            "ok": True,
            "user": serialize_user(user).model_dump(),
            "access_token": issue_access_token(user),
        }
    )


@user_api_bp.delete("/profile")
@jwt_required()
@csrf_protected
def api_delete_profile():
    delete_user_cascade(current_user._get_current_object())
    return jsonify({"ok": True, "message": "User account and all associated data deleted."})


@user_api_bp.get("")
@require_roles([ROLE_ADMIN])
def api_list_users():
    users = list_users()
    return jsonify({"ok": True, "count": len(users), "items": [serialize_user(u).model_dump() for u in users]})


@user_api_bp.delete("/<int:user_id>")
@require_roles([ROLE_ADMIN])
@csrf_protected
def api_delete_user(user_id: int):
    user = get_user(user_id)
    if not user:
        return not_found_response()
    delete_user_cascade(user)
    return jsonify({"ok": True})
