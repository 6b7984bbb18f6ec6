import logging

from jangji.repositories.progress_repository import ProgressRepository
from syncer.resolver import resolve


logger = logging.getLogger(__name__)


class ProgressSyncService:
    def __init__(self, repository=None, merge_bookmarks=False):
        self.repository = repository or ProgressRepository()
        self.merge_bookmarks = merge_bookmarks

    def get_progress(self, owner_id):
        return self.repository.fetch(owner_id)

    def sync(self, owner_id, client_record, merge_bookmarks=None):
        """Reconcile the device copy with the stored copy.

        Returns the record the server holds once reconciliation is done, or
        None when neither side has any progress.
        """
        if merge_bookmarks is None:
            merge_bookmarks = self.merge_bookmarks
        remote = self.repository.fetch(owner_id)
        decision = resolve(client_record, remote, merge_bookmarks=merge_bookmarks)
        if decision.diverged:
            logger.warning(
                "Progress for owner %s differs between device and server at the same timestamp %s",
                owner_id,
                remote.last_read_at,
            )
        if decision.write_remote and decision.winner is not None:
            self.repository.upsert(owner_id, decision.winner)
        return decision.winner
