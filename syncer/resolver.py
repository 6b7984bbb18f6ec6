# Last-write-wins decision between a device copy and the server copy of a progress record.

from dataclasses import replace
from typing import Iterable, List, NamedTuple, Optional

from .record import Bookmark, ProgressRecord


class Resolution(NamedTuple):
    winner: Optional[ProgressRecord]
    write_remote: bool
    write_local: bool
    diverged: bool = False


def merge_bookmark_lists(a: Iterable[Bookmark], b: Iterable[Bookmark]) -> List[Bookmark]:
    """Union of two bookmark lists keyed by (surah, ayah), newest timestamp per key."""
    merged = {}
    for bookmark in list(a) + list(b):
        current = merged.get(bookmark.key)
        if current is None or bookmark.timestamp > current.timestamp:
            merged[bookmark.key] = bookmark
    return sorted(merged.values(), key=lambda bm: bm.timestamp, reverse=True)


def _same_bookmarks(a: Iterable[Bookmark], b: Iterable[Bookmark]) -> bool:
    return set(a) == set(b)


def resolve(
    local: Optional[ProgressRecord],
    remote: Optional[ProgressRecord],
    merge_bookmarks: bool = False,
) -> Resolution:
    """Pick the authoritative record and the writes needed to converge.

    The record with the greater ``last_read_at`` wins in full. Equal
    timestamps count as already converged and produce no writes; ``diverged``
    is set when such records still differ in content.

    With ``merge_bookmarks`` the scalar fields still follow the timestamp, but
    the winner carries the union of both bookmark lists and each side is
    written whenever its bookmarks differ from that union. A tie whose
    positions differ stays diverged and is not merged.
    """
    if local is None and remote is None:
        return Resolution(None, False, False)
    if local is None:
        return Resolution(remote, write_remote=False, write_local=True)
    if remote is None:
        return Resolution(local, write_remote=True, write_local=False)

    diverged = False
    if local.last_read_at > remote.last_read_at:
        winner, write_remote, write_local = local, True, False
    elif remote.last_read_at > local.last_read_at:
        winner, write_remote, write_local = remote, False, True
    else:
        winner, write_remote, write_local = local, False, False
        diverged = not local.same_position(remote) or not _same_bookmarks(
            local.bookmarks, remote.bookmarks
        )

    # a tie on position has no winner, so merging must not push either side's position
    if merge_bookmarks and not (diverged and not local.same_position(remote)):
        merged = merge_bookmark_lists(local.bookmarks, remote.bookmarks)
        if not _same_bookmarks(merged, winner.bookmarks):
            winner = replace(winner, bookmarks=tuple(merged))
        write_remote = write_remote or not _same_bookmarks(merged, remote.bookmarks)
        write_local = write_local or not _same_bookmarks(merged, local.bookmarks)
        diverged = False

    return Resolution(winner, write_remote, write_local, diverged)
