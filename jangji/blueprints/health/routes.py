import logging

from flask import jsonify
from sqlalchemy import text

from jangji import db
from jangji.blueprints.health import health_bp


logger = logging.getLogger(__name__)


@health_bp.route("/health", methods=["GET"])
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check could not reach the database")
        db.session.rollback()
        return jsonify({"status": "degraded", "database": "error"}), 503
    return jsonify({"status": "ok", "database": "ok"}), 200
