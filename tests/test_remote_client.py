import json
from unittest import mock
from urllib.parse import urlsplit

import pytest
import requests

from syncer.orchestrator import Authenticator, ConnectivityMonitor, SessionProvider, SyncOrchestrator
from syncer.remote import RemoteProgressClient, RemoteSyncError, SyncTransportError
from syncer.tracker import ProgressTracker


class _Response:
    def __init__(self, flask_response):
        self.status_code = flask_response.status_code
        self.text = flask_response.get_data(as_text=True)

    def json(self):
        return json.loads(self.text)


class FlaskSession:
    """Routes requests-style calls into the Flask test client."""

    def __init__(self, client):
        self.client = client

    def request(self, method, url, timeout=None, json=None):
        return _Response(self.client.open(urlsplit(url).path, method=method, json=json))

    def get(self, url, timeout=None):
        return self.request("GET", url)


class FlakySession(FlaskSession):
    """FlaskSession that can be switched offline."""

    def __init__(self, client):
        super().__init__(client)
        self.offline = True

    def request(self, method, url, timeout=None, json=None):
        if self.offline:
            raise requests.ConnectionError("network unreachable")
        return super().request(method, url, timeout=timeout, json=json)


@pytest.fixture()
def remote(client):
    return RemoteProgressClient("http://jangji.test", timeout=1, session=FlaskSession(client))


def test_login_and_sync_round_trip(remote, user, make_record):
    owner = remote.login("reader", "secret123")
    assert owner == str(user.id)

    pushed = remote.sync_progress(make_record(owner_id=owner, surah=5, ayah=1, at=2000))
    assert pushed.last_surah == 5
    assert remote.fetch_progress() == pushed


def test_unauthorized_envelope_raises(remote, make_record):
    with pytest.raises(RemoteSyncError) as excinfo:
        remote.sync_progress(make_record())
    assert excinfo.value.error == "Unauthorized"
    assert excinfo.value.status_code == 401


def test_bad_credentials_raise(remote, user):
    with pytest.raises(RemoteSyncError) as excinfo:
        remote.login("reader", "wrong-password")
    assert excinfo.value.error == "invalid_credentials"


def test_connection_failure_is_a_transport_error(make_record):
    session = mock.MagicMock()
    session.request.side_effect = requests.ConnectionError("refused")
    session.get.side_effect = requests.ConnectionError("refused")
    client = RemoteProgressClient("http://offline.test", session=session)

    with pytest.raises(SyncTransportError):
        client.sync_progress(make_record())
    assert client.ping() is False


def test_non_json_response_is_a_transport_error(make_record):
    response = mock.MagicMock(status_code=502, text="<html>bad gateway</html>")
    response.json.side_effect = ValueError("no json")
    session = mock.MagicMock()
    session.request.return_value = response
    client = RemoteProgressClient("http://proxy.test", session=session)

    with pytest.raises(SyncTransportError):
        client.sync_progress(make_record())


def test_ping_reports_server_health(remote):
    assert remote.ping() is True


def test_two_devices_converge_through_the_server(app, client, user, tmp_path):
    from syncer.local_store import LocalProgressStore

    stores = [LocalProgressStore(f"sqlite:///{tmp_path / name}.db") for name in ("phone", "tablet")]
    try:
        devices = []
        for store in stores:
            remote = RemoteProgressClient("http://jangji.test", session=FlaskSession(client))
            session = SessionProvider()
            orchestrator = SyncOrchestrator(store, remote, session, ConnectivityMonitor(online=True))
            orchestrator.attach()
            session.set_owner(remote.login("reader", "secret123"))
            devices.append((store, orchestrator, session))

        phone_store, phone, phone_session = devices[0]
        tracker = ProgressTracker(phone_store, phone_session, on_change=phone.notify_local_change)
        tracker.save_progress(67, 1)
        tracker.toggle_bookmark(2, 255)

        tablet_store, tablet, tablet_session = devices[1]
        assert tablet.request_sync("online") is True

        owner = tablet_session.owner_id
        synced = tablet_store.get(owner)
        assert (synced.last_surah, synced.last_ayah) == (67, 1)
        assert synced.bookmark_keys() == {(2, 255)}
        assert synced == phone_store.get(owner)
    finally:
        for store in stores:
            store.dispose()


def test_watch_started_offline_syncs_after_reconnect(client, user, local_store):
    transport = FlakySession(client)
    remote = RemoteProgressClient("http://jangji.test", session=transport)
    session = SessionProvider()
    connectivity = ConnectivityMonitor(online=False)
    authenticate = Authenticator(remote, session, "reader", "secret123")
    orchestrator = SyncOrchestrator(local_store, remote, session, connectivity, authenticate=authenticate)

    authenticate()
    assert connectivity.probe(remote) is False
    orchestrator.attach()
    ProgressTracker(local_store, session).save_progress(36, 12)
    assert session.owner_id is None

    transport.offline = False
    assert connectivity.probe(remote) is True

    owner = str(user.id)
    assert session.owner_id == owner
    assert orchestrator.last_outcome == "synced"
    stored = remote.fetch_progress()
    assert (stored.owner_id, stored.last_surah, stored.last_ayah) == (owner, 36, 12)


def test_expired_server_session_is_renewed(client, user, local_store, make_record):
    remote = RemoteProgressClient("http://jangji.test", session=FlaskSession(client))
    session = SessionProvider()
    authenticate = Authenticator(remote, session, "reader", "secret123")
    orchestrator = SyncOrchestrator(
        local_store, remote, session, ConnectivityMonitor(online=True), authenticate=authenticate
    )
    authenticate()
    owner = session.owner_id
    local_store.put(make_record(owner_id=owner, surah=18, ayah=10, at=5000))

    with client.session_transaction() as server_session:
        server_session.clear()

    assert orchestrator.request_sync("manual") is True
    assert orchestrator.last_outcome == "synced"
    assert remote.authenticated
    assert remote.fetch_progress().last_surah == 18
