# Decides when device progress is reconciled with the server and applies the result.

import enum
import logging
import threading
from dataclasses import replace
from typing import Callable, List, Optional

from . import config
from .remote import RemoteSyncError, SyncError
from .resolver import resolve


logger = logging.getLogger(__name__)


class SyncState(enum.Enum):
    IDLE = "idle"
    SYNCING = "syncing"


class SessionProvider:
    """Current authenticated owner, with change notifications."""

    def __init__(self, owner_id: Optional[str] = None):
        self._owner_id = owner_id
        self._listeners: List[Callable[[Optional[str]], None]] = []

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    def subscribe(self, listener: Callable[[Optional[str]], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[Optional[str]], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_owner(self, owner_id: Optional[str]) -> None:
        if owner_id == self._owner_id:
            return
        self._owner_id = owner_id
        for listener in list(self._listeners):
            listener(owner_id)


class ConnectivityMonitor:
    """Online/offline flag; subscribers hear about reconnects only."""

    def __init__(self, online: bool = True):
        self._online = online
        self._listeners: List[Callable[[], None]] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_online(self, online: bool) -> None:
        was_online = self._online
        self._online = bool(online)
        if self._online and not was_online:
            for listener in list(self._listeners):
                listener()

    def probe(self, client) -> bool:
        self.set_online(client.ping())
        return self._online


class Authenticator:
    """Logs the client in with stored credentials whenever it has no live session.

    Publishes the resulting owner through the SessionProvider. Without
    credentials, or while the server is unreachable, ``fallback_owner`` is used
    as the local owner if nobody is set yet.
    """

    def __init__(self, client, session: SessionProvider, username=None, password=None, fallback_owner=None):
        self.client = client
        self.session = session
        self.username = username
        self.password = password
        self.fallback_owner = fallback_owner

    def __call__(self, force: bool = False) -> bool:
        if self.username and self.password and (force or not self.client.authenticated):
            try:
                self.session.set_owner(self.client.login(self.username, self.password))
            except SyncError as exc:
                logger.warning("Login failed, continuing offline: %s", exc)
        if self.session.owner_id is None and self.fallback_owner:
            self.session.set_owner(self.fallback_owner)
        return bool(self.client.authenticated)


class SyncOrchestrator:
    """Runs at most one sync at a time for this device.

    Triggers that arrive while a sync is in flight are dropped rather than
    queued; the next lifecycle event starts a fresh sync. Failures leave both
    stores untouched and are only logged.

    ``authenticate`` is called before every reconnect sync and once more with
    ``force=True`` when the server answers Unauthorized. A session owner with
    no local record takes over the record kept under ``anonymous_owner``.
    """

    def __init__(
        self,
        local_store,
        remote,
        session: SessionProvider,
        connectivity: ConnectivityMonitor,
        merge_bookmarks: bool = False,
        run_log=None,
        authenticate: Optional[Callable[..., bool]] = None,
        anonymous_owner: str = config.ANONYMOUS_OWNER,
    ):
        self.local_store = local_store
        self.remote = remote
        self.session = session
        self.connectivity = connectivity
        self.merge_bookmarks = merge_bookmarks
        self.run_log = run_log
        self.authenticate = authenticate
        self.anonymous_owner = anonymous_owner
        self.state = SyncState.IDLE
        self.last_outcome: Optional[str] = None
        self._lock = threading.Lock()
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        self.session.subscribe(self._on_session_changed)
        self.connectivity.subscribe(self._on_online)
        self._attached = True
        if self.session.owner_id:
            self.request_sync("session")

    def detach(self) -> None:
        if not self._attached:
            return
        self.session.unsubscribe(self._on_session_changed)
        self.connectivity.unsubscribe(self._on_online)
        self._attached = False

    def _on_session_changed(self, owner_id: Optional[str]) -> None:
        if owner_id:
            self.request_sync("session")

    def _on_online(self) -> None:
        if self.authenticate is not None:
            self.authenticate()
        self.request_sync("online")

    def notify_local_change(self) -> bool:
        if not self.connectivity.is_online:
            return False
        return self.request_sync("local_change")

    def request_sync(self, trigger: str = "manual") -> bool:
        if not self._lock.acquire(blocking=False):
            logger.debug("Sync already in flight, dropping %s trigger", trigger)
            return False
        self.state = SyncState.SYNCING
        try:
            self.last_outcome = self._perform_sync(trigger)
        finally:
            self.state = SyncState.IDLE
            self._lock.release()
        return True

    def _local_record(self, owner_id: str):
        local = self.local_store.get(owner_id)
        if local is not None or owner_id == self.anonymous_owner:
            return local, False
        anonymous = self.local_store.get(self.anonymous_owner)
        if anonymous is None:
            return None, False
        logger.info("Adopting progress recorded while logged out for %s", owner_id)
        return replace(anonymous, owner_id=owner_id), True

    def _push(self, owner_id: str, local):
        try:
            return self.remote.sync_progress(local)
        except RemoteSyncError as exc:
            if exc.error != "Unauthorized" or self.authenticate is None:
                raise
            if not self.authenticate(force=True) or self.session.owner_id != owner_id:
                raise
            logger.info("Session renewed for %s, retrying sync", owner_id)
            return self.remote.sync_progress(local)

    def _perform_sync(self, trigger: str) -> str:
        owner_id = self.session.owner_id
        if not owner_id:
            return "no_owner"
        run = self.run_log(trigger, owner_id) if self.run_log else None
        try:
            local, adopted = self._local_record(owner_id)
            returned = self._push(owner_id, local)
            decision = resolve(local, returned, merge_bookmarks=self.merge_bookmarks)
            if run:
                run.local_last_read_at = local.last_read_at if local else None
                run.remote_last_read_at = returned.last_read_at if returned else None
            if decision.write_local and decision.winner is not None:
                self.local_store.put(replace(decision.winner, owner_id=owner_id))
                if run:
                    run.wrote_local = True
            elif adopted:
                self.local_store.put(local)
                if run:
                    run.wrote_local = True
        except Exception as exc:
            logger.warning("Sync failed, will retry later: %s", exc)
            if run:
                run.fail(str(exc))
            return "failed"
        if run:
            run.finish("success")
        logger.info("Progress synced for %s (trigger=%s)", owner_id, trigger)
        return "synced"
