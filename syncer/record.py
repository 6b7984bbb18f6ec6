# Reading progress record shared by the device store, the server and the resolver.

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple


SURAH_COUNT = 114


class InvalidRecordError(ValueError):
    pass


def now_ms() -> int:
    return int(time.time() * 1000)


def _as_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRecordError(f"{key} must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise InvalidRecordError(f"{key} must be an integer")
    return int(value)


@dataclass(frozen=True)
class Bookmark:
    surah: int
    ayah: int
    timestamp: int

    @property
    def key(self) -> Tuple[int, int]:
        return (self.surah, self.ayah)

    def to_dict(self) -> Dict[str, int]:
        return {"surah": self.surah, "ayah": self.ayah, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Any) -> "Bookmark":
        if not isinstance(data, dict):
            raise InvalidRecordError("bookmark must be an object")
        bookmark = cls(
            surah=_as_int(data, "surah"),
            ayah=_as_int(data, "ayah"),
            timestamp=_as_int(data, "timestamp"),
        )
        validate_position(bookmark.surah, bookmark.ayah)
        if bookmark.timestamp < 0:
            raise InvalidRecordError("bookmark timestamp must not be negative")
        return bookmark


def validate_position(surah: int, ayah: int) -> None:
    if not 1 <= surah <= SURAH_COUNT:
        raise InvalidRecordError(f"surah must be between 1 and {SURAH_COUNT}")
    if ayah < 1:
        raise InvalidRecordError("ayah must be at least 1")


@dataclass(frozen=True)
class ProgressRecord:
    """One owner's last reading position plus bookmarks.

    ``last_read_at`` (epoch milliseconds) is the only ordering key used when
    two copies of the record disagree. Bookmarks travel with the record and
    are replaced together with it unless bookmark merging is enabled.
    """

    owner_id: str
    last_surah: int
    last_ayah: int
    last_read_at: int
    bookmarks: Tuple[Bookmark, ...] = field(default_factory=tuple)

    def __post_init__(self):
        validate_position(self.last_surah, self.last_ayah)
        if self.last_read_at < 0:
            raise InvalidRecordError("last_read_at must not be negative")
        if not isinstance(self.bookmarks, tuple):
            object.__setattr__(self, "bookmarks", tuple(self.bookmarks))

    def sorted_bookmarks(self) -> Tuple[Bookmark, ...]:
        return tuple(sorted(self.bookmarks, key=lambda b: b.timestamp, reverse=True))

    def bookmark_keys(self) -> frozenset:
        return frozenset(b.key for b in self.bookmarks)

    def same_position(self, other: "ProgressRecord") -> bool:
        return (self.last_surah, self.last_ayah) == (other.last_surah, other.last_ayah)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "last_surah": self.last_surah,
            "last_ayah": self.last_ayah,
            "last_read_at": self.last_read_at,
            "bookmarks": [b.to_dict() for b in self.bookmarks],
        }

    @classmethod
    def from_dict(cls, data: Any, owner_id: Optional[str] = None) -> "ProgressRecord":
        """Build a record from its JSON shape.

        ``owner_id`` overrides whatever owner the payload claims; the server
        always passes the session owner here.
        """
        if not isinstance(data, dict):
            raise InvalidRecordError("progress must be an object")
        owner = owner_id if owner_id is not None else data.get("owner_id")
        if owner is None or not str(owner).strip():
            raise InvalidRecordError("owner_id is required")
        raw_bookmarks = data.get("bookmarks")
        if raw_bookmarks is None:
            raw_bookmarks = []
        if not isinstance(raw_bookmarks, list):
            raise InvalidRecordError("bookmarks must be a list")
        return cls(
            owner_id=str(owner),
            last_surah=_as_int(data, "last_surah"),
            last_ayah=_as_int(data, "last_ayah"),
            last_read_at=_as_int(data, "last_read_at"),
            bookmarks=tuple(Bookmark.from_dict(b) for b in raw_bookmarks),
        )


def bookmarks_from_json(items: Optional[Iterable[Dict[str, Any]]]) -> Tuple[Bookmark, ...]:
    return tuple(Bookmark.from_dict(b) for b in (items or []))


def bookmarks_to_json(bookmarks: Iterable[Bookmark]):
    return [b.to_dict() for b in bookmarks]
