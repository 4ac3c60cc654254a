"""
api.routes_connection - /api/v1/connection/* endpoints.

Connection test plus load/save of the last-used connection form.
"""

from flask import jsonify

from api import api_bp
from api.request_utils import connection_params, request_data
from import_engine.diagnostics import check_connection
from services.config_store import load_saved_config, save_config


@api_bp.route("/connection/test", methods=["POST"])
def connection_test():
    """
    POST /api/v1/connection/test

    JSON: {backend, host, port, username, password, database,
           oracle_mode, tns}
    """
    params = connection_params(request_data())
    return jsonify({"ok": True, "message": check_connection(params)})


@api_bp.route("/connection/config", methods=["GET"])
def connection_config_get():
    return jsonify(load_saved_config())


@api_bp.route("/connection/config", methods=["PUT", "POST"])
def connection_config_put():
    save_config(request_data())
    return jsonify({"ok": True, "message": "Configuration saved"})
