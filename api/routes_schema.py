"""
api.routes_schema - Table structure and header comparison endpoints.

Let the caller check a file against the target table before importing.
"""

from flask import jsonify

from api import api_bp
from api.request_utils import connection_params, request_data, saved_upload, table_name
from import_engine.diagnostics import compare_file_with_table, table_columns
from import_engine.grid_reader import read_headers


@api_bp.route("/tables/columns", methods=["POST"])
def tables_columns():
    """
    POST /api/v1/tables/columns

    JSON: connection settings + {table}.  Columns in physical order.
    """
    data = request_data()
    table = table_name(data)
    columns = table_columns(connection_params(data), table)
    return jsonify({"table": table, "columns": columns})


@api_bp.route("/headers", methods=["POST"])
def file_headers():
    """POST /api/v1/headers - multipart field 'file'."""
    with saved_upload() as path:
        headers = read_headers(path)
    return jsonify({"headers": headers})


@api_bp.route("/compare", methods=["POST"])
def compare():
    """
    POST /api/v1/compare

    Multipart: field 'file' + connection settings and 'table' as form fields.
    """
    data = request_data()
    table = table_name(data)
    params = connection_params(data)
    with saved_upload() as path:
        result = compare_file_with_table(params, path, table)
    return jsonify(result.to_dict())
