import logging

from flask import current_app, jsonify, request, session

from jangji import db
from jangji.blueprints.auth import auth_bp
from jangji.models.user import User


logger = logging.getLogger(__name__)


def _credentials():
    username = None
    password = None
    if request.is_json:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password")
    if not username:
        username = request.form.get("username")
    if not password:
        password = request.form.get("password")
    return username, password


@auth_bp.route("/login", methods=["POST"])
def login():
    username, password = _credentials()
    if not username or not str(username).strip():
        return jsonify({"error": "username_required"}), 400
    if not password or not str(password).strip():
        return jsonify({"error": "password_required"}), 400
    existing = User.query.filter_by(username=str(username).strip()).first()
    if existing is None:
        return jsonify({"error": "user_not_found"}), 404
    if not existing.check_password(password):
        logger.info("Failed login for %s", existing.username)
        return jsonify({"error": "invalid_credentials"}), 401
    session["user_id"] = existing.id
    return jsonify({"status": "ok", "user_id": existing.id}), 200


@auth_bp.route("/logout", methods=["POST", "GET"])
def logout():
    session.pop("user_id", None)
    return jsonify({"status": "ok"}), 200


@auth_bp.route("/register", methods=["POST"])
def register():
    username, password = _credentials()
    if not username or not str(username).strip():
        return jsonify({"error": "username_required"}), 400
    if not password or not str(password).strip():
        return jsonify({"error": "password_required"}), 400
    if len(str(password)) < current_app.config.get("MIN_PASSWORD_LENGTH", 6):
        return jsonify({"error": "password_too_short"}), 400
    existing = User.query.filter_by(username=str(username).strip()).first()
    if existing is not None:
        return jsonify({"error": "username_taken"}), 409
    u = User(username=str(username).strip())
    u.set_password(password)
    db.session.add(u)
    db.session.commit()
    session["user_id"] = u.id
    return jsonify({"status": "ok", "user_id": u.id}), 201
