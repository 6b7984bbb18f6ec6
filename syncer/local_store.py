# Per-device storage of reading progress, one row per owner.

import logging
import os
from typing import List, Optional

from sqlalchemy import JSON, BigInteger, Column, Integer, MetaData, String, Table, create_engine, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import make_url

from . import config
from .record import ProgressRecord, bookmarks_from_json, bookmarks_to_json


logger = logging.getLogger(__name__)

metadata = MetaData()

local_progress = Table(
    "local_progress",
    metadata,
    Column("owner_id", String(255), primary_key=True),
    Column("last_surah", Integer, nullable=False),
    Column("last_ayah", Integer, nullable=False),
    Column("last_read_at", BigInteger, nullable=False),
    Column("bookmarks", JSON, nullable=False, default=list),
)


def _ensure_sqlite_dir(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    directory = os.path.dirname(os.path.abspath(url.database))
    os.makedirs(directory, exist_ok=True)


class LocalProgressStore:
    def __init__(self, database_url: Optional[str] = None, engine=None):
        if engine is None:
            database_url = database_url or config.LOCAL_DATABASE_URL
            _ensure_sqlite_dir(database_url)
            engine = create_engine(database_url)
        self.engine = engine
        metadata.create_all(self.engine)

    def get(self, owner_id: str) -> Optional[ProgressRecord]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(local_progress).where(local_progress.c.owner_id == owner_id)
            ).mappings().first()
        if row is None:
            return None
        return ProgressRecord(
            owner_id=row["owner_id"],
            last_surah=row["last_surah"],
            last_ayah=row["last_ayah"],
            last_read_at=row["last_read_at"],
            bookmarks=bookmarks_from_json(row["bookmarks"]),
        )

    def put(self, record: ProgressRecord) -> None:
        values = {
            "owner_id": record.owner_id,
            "last_surah": record.last_surah,
            "last_ayah": record.last_ayah,
            "last_read_at": record.last_read_at,
            "bookmarks": bookmarks_to_json(record.bookmarks),
        }
        stmt = sqlite_insert(local_progress).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[local_progress.c.owner_id],
            set_={k: stmt.excluded[k] for k in values if k != "owner_id"},
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)
        logger.debug("Stored local progress for %s at %s", record.owner_id, record.last_read_at)

    def owners(self) -> List[str]:
        with self.engine.connect() as conn:
            return [r[0] for r in conn.execute(select(local_progress.c.owner_id).order_by(local_progress.c.owner_id))]

    def dispose(self) -> None:
        self.engine.dispose()
