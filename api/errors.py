"""
api.errors - JSON error handlers for the API blueprint.
"""

from flask import jsonify

from api import api_bp
from errors import ImportEngineError

# kind → HTTP status; anything else is 422
STATUS_BY_KIND = {
    "config": 400,
    "source_read": 400,
    "connection": 502,
}


def status_for(error: ImportEngineError) -> int:
    return STATUS_BY_KIND.get(error.kind, 422)


@api_bp.errorhandler(ImportEngineError)
def api_engine_error(e: ImportEngineError):
    body = e.to_dict()
    body["error"] = body.pop("kind")
    return jsonify(body), status_for(e)


@api_bp.errorhandler(404)
def api_not_found(_e):
    return jsonify({"error": "not found"}), 404


@api_bp.errorhandler(400)
def api_bad_request(_e):
    return jsonify({"error": "bad request"}), 400


@api_bp.errorhandler(413)
def api_too_large(_e):
    return jsonify({"error": "upload too large"}), 413


@api_bp.errorhandler(500)
def api_server_error(_e):
    return jsonify({"error": "internal server error"}), 500
