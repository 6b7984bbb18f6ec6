from dataclasses import replace
from typing import Callable, Optional, Tuple

from . import config
from .record import Bookmark, ProgressRecord, now_ms, validate_position


class ProgressTracker:
    """Records reading position and bookmarks on this device.

    Every mutation moves ``last_read_at`` forward and calls ``on_change`` so the
    orchestrator can push the new state while online.
    """

    def __init__(self, store, session, on_change: Optional[Callable[[], object]] = None, clock=now_ms):
        self.store = store
        self.session = session
        self.on_change = on_change
        self.clock = clock

    @property
    def owner_id(self) -> str:
        return self.session.owner_id or config.ANONYMOUS_OWNER

    def current(self) -> Optional[ProgressRecord]:
        return self.store.get(self.owner_id)

    def _next_timestamp(self, existing: Optional[ProgressRecord]) -> int:
        # strictly increasing per device
        now = self.clock()
        if existing is not None and now <= existing.last_read_at:
            return existing.last_read_at + 1
        return now

    def _commit(self, record: ProgressRecord) -> ProgressRecord:
        self.store.put(record)
        if self.on_change is not None:
            self.on_change()
        return record

    def save_progress(self, surah: int, ayah: int) -> ProgressRecord:
        validate_position(surah, ayah)
        existing = self.current()
        record = ProgressRecord(
            owner_id=self.owner_id,
            last_surah=surah,
            last_ayah=ayah,
            last_read_at=self._next_timestamp(existing),
            bookmarks=existing.bookmarks if existing else (),
        )
        return self._commit(record)

    def toggle_bookmark(self, surah: int, ayah: int) -> bool:
        validate_position(surah, ayah)
        existing = self.current()
        now = self._next_timestamp(existing)
        existing = existing or ProgressRecord(
            owner_id=self.owner_id, last_surah=1, last_ayah=1, last_read_at=now
        )
        bookmarks = [b for b in existing.bookmarks if b.key != (surah, ayah)]
        added = len(bookmarks) == len(existing.bookmarks)
        if added:
            bookmarks.append(Bookmark(surah=surah, ayah=ayah, timestamp=now))
        self._commit(replace(existing, bookmarks=tuple(bookmarks), last_read_at=now))
        return added

    def is_bookmarked(self, surah: int, ayah: int) -> bool:
        record = self.current()
        return bool(record) and (surah, ayah) in record.bookmark_keys()

    def bookmarks(self) -> Tuple[Bookmark, ...]:
        record = self.current()
        return record.sorted_bookmarks() if record else ()
