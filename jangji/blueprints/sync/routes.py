import logging

from flask import current_app, jsonify, request, session

from jangji import db
from jangji.blueprints.sync import sync_bp
from jangji.services.progress_sync_service import ProgressSyncService
from syncer.record import InvalidRecordError, ProgressRecord


logger = logging.getLogger(__name__)

progress_sync_service = ProgressSyncService()


def _require_user():
    user_id = session.get("user_id")
    if not user_id:
        return None
    return int(user_id)


def _failure(error, status):
    return jsonify({"success": False, "error": error}), status


def _success(record):
    return jsonify({"success": True, "data": record.to_dict() if record is not None else None}), 200


def _client_record(owner_id):
    data = request.get_json(silent=True)
    if data is None and request.get_data().strip() not in (b"", b"null"):
        raise InvalidRecordError("body is not valid JSON")
    if isinstance(data, dict) and "client_progress" in data:
        data = data["client_progress"]
    if data is None:
        return None
    return ProgressRecord.from_dict(data, owner_id=str(owner_id))


@sync_bp.route("/progress", methods=["POST"])
def sync_progress():
    user_id = _require_user()
    if not user_id:
        return _failure("Unauthorized", 401)
    try:
        client_record = _client_record(user_id)
    except InvalidRecordError as exc:
        logger.info("Rejected progress payload from user %s: %s", user_id, exc)
        return _failure("Bad Request", 400)
    try:
        record = progress_sync_service.sync(
            str(user_id),
            client_record,
            merge_bookmarks=current_app.config.get("SYNC_MERGE_BOOKMARKS", False),
        )
    except Exception:
        logger.exception("Failed to sync progress for user %s", user_id)
        db.session.rollback()
        return _failure("Internal Server Error", 500)
    return _success(record)


@sync_bp.route("/progress", methods=["GET"])
def get_progress():
    user_id = _require_user()
    if not user_id:
        return _failure("Unauthorized", 401)
    try:
        record = progress_sync_service.get_progress(str(user_id))
    except Exception:
        logger.exception("Failed to load progress for user %s", user_id)
        db.session.rollback()
        return _failure("Internal Server Error", 500)
    return _success(record)
