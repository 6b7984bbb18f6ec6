# HTTP client for the server's progress sync endpoint.

import logging
from typing import Any, Dict, Optional

import requests

from . import config
from .record import InvalidRecordError, ProgressRecord


logger = logging.getLogger(__name__)

SYNC_PATH = "/api/sync/progress"


class SyncError(Exception):
    pass


class SyncTransportError(SyncError):
    """The request never produced a usable response."""


class RemoteSyncError(SyncError):
    """The server answered with ``success: false``."""

    def __init__(self, error: str, status_code: Optional[int] = None):
        super().__init__(error)
        self.error = error
        self.status_code = status_code


class RemoteProgressClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, session=None):
        self.base_url = (base_url or config.SERVER_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.owner_id: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        """True while the last login has not been rejected or logged out."""
        return self.owner_id is not None

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, self._url(path), timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise SyncTransportError(f"{method} {path} failed: {exc}") from exc

    def _json(self, response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise SyncTransportError(
                f"Non-JSON response (status={response.status_code}): {response.text[:200]}"
            ) from exc
        if not isinstance(body, dict):
            raise SyncTransportError(f"Unexpected response body: {body!r}")
        return body

    def _envelope(self, response: requests.Response) -> Optional[ProgressRecord]:
        body = self._json(response)
        if not body.get("success"):
            if response.status_code == 401:
                self.owner_id = None
            raise RemoteSyncError(str(body.get("error") or "Unknown Error"), response.status_code)
        data = body.get("data")
        if data is None:
            return None
        try:
            return ProgressRecord.from_dict(data)
        except InvalidRecordError as exc:
            raise SyncTransportError(f"Server returned an invalid record: {exc}") from exc

    def login(self, username: str, password: str) -> str:
        response = self._request("POST", "/login", json={"username": username, "password": password})
        body = self._json(response)
        if response.status_code != 200 or body.get("status") != "ok":
            raise RemoteSyncError(str(body.get("error") or "login_failed"), response.status_code)
        self.owner_id = str(body["user_id"])
        return self.owner_id

    def logout(self) -> None:
        self._request("POST", "/logout")
        self.owner_id = None

    def sync_progress(self, record: Optional[ProgressRecord]) -> Optional[ProgressRecord]:
        payload = {"client_progress": record.to_dict() if record is not None else None}
        response = self._request("POST", SYNC_PATH, json=payload)
        return self._envelope(response)

    def fetch_progress(self) -> Optional[ProgressRecord]:
        return self._envelope(self._request("GET", SYNC_PATH))

    def ping(self) -> bool:
        try:
            response = self.session.get(self._url("/health"), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.debug("Health probe failed: %s", exc)
            return False
        return response.status_code == 200
