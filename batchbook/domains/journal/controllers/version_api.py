"""Entry version history API."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from pydantic import ValidationError

from batchbook.core.utils.decorators import csrf_protected
from batchbook.core.utils.responses import validation_error_response
from batchbook.domains.journal.mappers import map_entry, map_version
from batchbook.domains.journal.schemas.version_schemas import SnapshotRequest
from batchbook.domains.journal.services import version_service
from batchbook.realtime import gateway

RESTORED_MESSAGE = "Entry restored from a previous version."

version_api_bp = Blueprint("version_api", __name__)


@version_api_bp.post("/<int:entry_id>/versions")
@jwt_required()
@csrf_protected
def create_snapshot(entry_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        data = SnapshotRequest.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)
    version = version_service.create_manual_snapshot(entry_id, int(get_jwt_identity()), note=data.note)
    return jsonify({"ok": True, "version": map_version(version)}), 201


@version_api_bp.get("/<int:entry_id>/versions")
@jwt_required()
def list_versions(entry_id: int):
    versions = version_service.list_versions(entry_id, int(get_jwt_identity()))
    return jsonify({"ok": True, "count": len(versions), "items": [map_version(v) for v in versions]})


@version_api_bp.get("/<int:entry_id>/versions/<int:version_id>")
@jwt_required()
def get_version(entry_id: int, version_id: int):
    version = version_service.get_version(entry_id, version_id, int(get_jwt_identity()))
    return jsonify({"ok": True, "version": map_version(version)})


@version_api_bp.post("/<int:entry_id>/versions/<int:version_id>/restore")
@jwt_required()
@csrf_protected
def restore_version(entry_id: int, version_id: int):
    entry = version_service.restore(entry_id, version_id, int(get_jwt_identity()))
    gateway.broadcast_synced(entry, RESTORED_MESSAGE)
    return jsonify({"ok": True, "message": RESTORED_MESSAGE, "entry": map_entry(entry)})
