"""Journal export endpoints (JSON, PDF, ZIP)."""

from __future__ import annotations

import json
import logging
from datetime import datetime

from flask import Blueprint, Response, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required

from batchbook.domains.journal.services import entry_service, export_service

logger = logging.getLogger(__name__)

export_api_bp = Blueprint("export_api", __name__)


def _attachment(body, mimetype: str, filename: str) -> Response:
    resp = Response(body, mimetype=mimetype)
    resp.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return resp


def _no_entries():
    return jsonify({"ok": False, "error": "not_found", "message": "No entries to export."}), 404


def _pdf_unavailable(exc: RuntimeError):
    logger.error("PDF export failed: %s", exc)
    return jsonify({"ok": False, "error": "pdf_unavailable", "message": str(exc)}), 503


@export_api_bp.get("/entries/<int:entry_id>/json")
@jwt_required()
def export_entry_json(entry_id: int):
    entry = entry_service.require_owned_entry(int(get_jwt_identity()), entry_id)
    body = json.dumps(export_service.sanitize_entry_for_export(entry), indent=2)
    return _attachment(body, "application/json", f"entry-{entry.id}.json")


@export_api_bp.get("/entries/<int:entry_id>/pdf")
@jwt_required()
def export_entry_pdf(entry_id: int):
    entry = entry_service.require_owned_entry(int(get_jwt_identity()), entry_id)
    try:
        pdf = export_service.entry_pdf(entry)
    except RuntimeError as exc:
        return _pdf_unavailable(exc)
    return _attachment(pdf, "application/pdf", export_service.entry_pdf_filename(entry))


@export_api_bp.get("/all/json")
@jwt_required()
def export_all_json():
    entries = entry_service.list_all_entries(int(get_jwt_identity()))
    body = json.dumps(export_service.export_all_json(entries), indent=2)
    stamp = datetime.utcnow().strftime("%Y%m%d")
    return _attachment(body, "application/json", f"journal-entries-{stamp}.json")


@export_api_bp.get("/all/pdf")
@jwt_required()
def export_all_pdf():
    entries = entry_service.list_all_entries(int(get_jwt_identity()))
    if not entries:
        return _no_entries()
    try:
        archive = export_service.entries_zip(entries)
    except RuntimeError as exc:
        return _pdf_unavailable(exc)
    stamp = datetime.utcnow().strftime("%Y-%m-%d")
    return _attachment(archive, "application/zip", f"my-journal-{stamp}.zip")


@export_api_bp.get("/summary")
@jwt_required()
def export_summary():
    entries = entry_service.list_all_entries(int(get_jwt_identity()))
    if not entries:
        return _no_entries()
    try:
        pdf = export_service.summary_pdf(entries)
    except RuntimeError as exc:
        return _pdf_unavailable(exc)
    return _attachment(pdf, "application/pdf", "journal-summary.pdf")
