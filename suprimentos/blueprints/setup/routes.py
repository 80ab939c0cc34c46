"""
First-run setup.

- GET /setup/status  which tables/columns are missing, or the connection error
- GET /setup/script  SQL that creates the tables and adds missing columns
"""

from flask import Blueprint, current_app, jsonify

from ...errors import StoreError
from ...schema import setup_script
from ...store import TABLES

setup_bp = Blueprint("setup", __name__, url_prefix="/setup")


@setup_bp.route("/status")
def status():
    ws = current_app.extensions["suprimentos.workspace"]
    payload = ws.load_all()

    missing_columns = {}
    if not payload["missingTables"] and payload["connectionError"] is None:
        for table in TABLES:
            try:
                columns = ws.store.missing_columns(table)
            except StoreError:
                continue
            if columns:
                missing_columns[table] = columns
    payload["missingColumns"] = missing_columns
    return jsonify(payload)


@setup_bp.route("/script")
def script():
    return current_app.response_class(setup_script(), mimetype="text/plain")
