"""
api.routes_import - /api/v1/import endpoint.

Accepts a spreadsheet or CSV via multipart upload, with the connection
settings and target table as form fields.
"""

from flask import jsonify

from api import api_bp
from api.errors import status_for
from api.request_utils import connection_params, flag, request_data, saved_upload, table_name
from import_engine import run_import


@api_bp.route("/import", methods=["POST"])
def api_import():
    """
    POST /api/v1/import

    Multipart: field 'file', plus backend/host/port/username/password/
    database/oracle_mode/tns, 'table' and optional 'truncate' (1/0).

    The response carries the outcome and every progress event; the
    status is 200 on success, otherwise derived from the error kind.
    """
    data = request_data()
    table = table_name(data)
    params = connection_params(data)

    with saved_upload() as path:
        outcome = run_import(params, path, table, truncate=flag(data, "truncate"))

    status = 200 if outcome.ok else status_for(outcome.failure)
    return jsonify(outcome.to_dict()), status
