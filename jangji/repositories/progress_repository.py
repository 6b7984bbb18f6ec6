from datetime import datetime

from flask import current_app
from sqlalchemy.dialects import mysql, postgresql, sqlite

from jangji import db
from jangji.models.user_progress import UserProgress
from syncer.record import ProgressRecord, bookmarks_from_json, bookmarks_to_json


class UnsupportedDialectError(RuntimeError):
    pass


class ProgressRepository:
    def __init__(self, app_id=None):
        self.app_id = app_id

    def _to_record(self, row):
        return ProgressRecord(
            owner_id=str(row.user_id),
            last_surah=row.last_surah,
            last_ayah=row.last_ayah,
            last_read_at=row.last_read_at,
            bookmarks=bookmarks_from_json(row.bookmarks),
        )

    def fetch(self, owner_id):
        row = UserProgress.query.filter_by(user_id=int(owner_id)).first()
        if row is None:
            return None
        return self._to_record(row)

    def _insert_statement(self, values, updates):
        dialect = db.session.get_bind().dialect.name
        if dialect in ("sqlite", "postgresql"):
            insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            stmt = insert(UserProgress).values(**values)
            return stmt.on_conflict_do_update(
                index_elements=[UserProgress.user_id],
                set_={key: stmt.excluded[key] for key in updates},
            )
        if dialect in ("mysql", "mariadb"):
            stmt = mysql.insert(UserProgress).values(**values)
            return stmt.on_duplicate_key_update({key: stmt.inserted[key] for key in updates})
        raise UnsupportedDialectError(f"No atomic upsert for dialect {dialect!r}")

    def upsert(self, owner_id, record):
        """Insert or update the owner's row in a single statement."""
        values = {
            "user_id": int(owner_id),
            "app_id": self.app_id or current_app.config.get("APP_ID", "jangji-app"),
            "last_surah": record.last_surah,
            "last_ayah": record.last_ayah,
            "last_read_at": record.last_read_at,
            "bookmarks": bookmarks_to_json(record.bookmarks),
            "updated_at": datetime.utcnow(),
        }
        updates = ("last_surah", "last_ayah", "last_read_at", "bookmarks", "updated_at")
        db.session.execute(self._insert_statement(values, updates))
        db.session.commit()
