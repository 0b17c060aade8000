"""Journal entry JSON API."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from pydantic import ValidationError

from batchbook.core.utils.decorators import csrf_protected
from batchbook.core.utils.responses import not_found_response, validation_error_response
from batchbook.domains.journal.mappers import map_entry
from batchbook.domains.journal.schemas.entry_schemas import EntryCreate, EntryListFilter, EntryUpdate
from batchbook.domains.journal.services import entry_service
from batchbook.platform.outbox import dispatch_ready

entry_api_bp = Blueprint("entry_api", __name__)


@entry_api_bp.get("")
@jwt_required()
def list_entries():
    user_id = int(get_jwt_identity())
    try:
        filters = EntryListFilter.model_validate(request.args.to_dict())
    except ValidationError as exc:
        return validation_error_response(exc)
    result = entry_service.list_entries(
        user_id,
        q=filters.q,
        exact=filters.exact,
        tags=filters.tag_list,
        start_date=filters.start_date,
        end_date=filters.end_date,
        mood=filters.mood.value if filters.mood else None,
        page=filters.page,
        per_page=filters.limit,
        max_per_page=current_app.config.get("ENTRIES_PER_PAGE_MAX", 100),
    )
    return jsonify(
        {
            "ok": True,
            "items": [map_entry(e) for e in result["items"]],
            "page": result["page"],
            "limit": result["per_page"],
            "pages": result["pages"],
            "total": result["total"],
        }
    )


@entry_api_bp.post("")
@jwt_required()
@csrf_protected
def create_entry():
    payload = request.get_json(silent=True) or {}
    try:
        data = EntryCreate.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)
    entry = entry_service.create_entry(
        int(get_jwt_identity()),
        title=data.title,
        content=data.content,
        mood=data.mood.value if data.mood else None,
        tags=data.tags,
    )
    return jsonify({"ok": True, "entry": map_entry(entry)}), 201


@entry_api_bp.get("/<int:entry_id>")
@jwt_required()
def get_entry(entry_id: int):
    entry = entry_service.require_owned_entry(int(get_jwt_identity()), entry_id)
    return jsonify({"ok": True, "entry": map_entry(entry)})


@entry_api_bp.route("/<int:entry_id>", methods=["PUT", "PATCH"])
@jwt_required()
@csrf_protected
def update_entry(entry_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        data = EntryUpdate.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)
    fields = data.model_dump(exclude_unset=True)
    if "mood" in fields and fields["mood"] is not None:
        fields["mood"] = fields["mood"].value
    for key in ("title", "content"):
        if key in fields and fields[key] is None:
            fields.pop(key)
    user_id = int(get_jwt_identity())
    entry = entry_service.update_entry(user_id, entry_id, **fields)
    if not entry:
        return not_found_response()
    _publish_staged(user_id)
    return jsonify({"ok": True, "entry": map_entry(entry)})


@entry_api_bp.delete("/<int:entry_id>")
@jwt_required()
@csrf_protected
def delete_entry(entry_id: int):
    user_id = int(get_jwt_identity())
    deleted = entry_service.delete_entry(user_id, entry_id)
    if not deleted:
        return not_found_response()
    _publish_staged(user_id)
    return jsonify({"ok": True, "message": "Entry removed."})


def _publish_staged(user_id: int) -> None:
    """Deliver the user's committed outbox events so open rooms hear about the change.

    Anything left over is picked up by `flask outbox-dispatch`.
    """
    dispatch_ready(user_id=user_id)
