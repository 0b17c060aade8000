"""JSON response helpers shared by controllers."""

from __future__ import annotations

from flask import jsonify
from pydantic import ValidationError


def jsonable_errors(exc: ValidationError) -> list[dict]:
    errors = exc.errors(include_url=False)
    for err in errors:
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        if "input" in err:
            err.pop("input")
    return errors


def validation_error_response(exc: ValidationError, error: str = "validation_error"):
    return jsonify({"ok": False, "error": error, "details": jsonable_errors(exc)}), 400


def not_found_response():
    return jsonify({"ok": False, "error": "not_found"}), 404
