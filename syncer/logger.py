import json
import logging
import os
import time
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from . import config


logger = logging.getLogger(__name__)


class SyncRunLog:
    """JSON record of one sync attempt, kept on disk for diagnostics.

    Background syncs never surface errors to the reader, so this file is the
    only trace of why progress did or did not reach the server.
    """

    def __init__(self, trigger: str, owner_id: Optional[str] = None, logs_path: Optional[str] = None):
        self.run_id = str(uuid.uuid4())
        self.trigger = trigger
        self.owner_id = owner_id
        self.logs_path = logs_path or config.RUN_LOGS_PATH
        self.start_time = datetime.now()
        self.filename = f"sync_{int(time.time() * 1000)}_{self.run_id[:8]}.json"
        self.filepath = os.path.join(self.logs_path, self.filename)
        self.status: str = "running"
        self.error: Optional[str] = None
        self.local_last_read_at: Optional[int] = None
        self.remote_last_read_at: Optional[int] = None
        self.wrote_local = False
        self._write()

    def _to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "trigger": self.trigger,
            "owner_id": self.owner_id,
            "started_at": self.start_time.isoformat(),
            "finished_at": datetime.now().isoformat() if self.status != "running" else None,
            "status": self.status,
            "error": self.error,
            "local_last_read_at": self.local_last_read_at,
            "remote_last_read_at": self.remote_last_read_at,
            "wrote_local": self.wrote_local,
        }

    def _write(self):
        try:
            os.makedirs(self.logs_path, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._to_dict(), f, indent=2)
        except OSError as exc:
            logger.debug("Could not write run log %s: %s", self.filepath, exc)

    def finish(self, status: str = "success"):
        self.status = status
        self._write()

    def fail(self, error: str):
        self.error = error
        self.status = "failed"
        self._write()


class SyncRunLogFactory:
    """Creates one SyncRunLog per attempt inside a fixed directory."""

    def __init__(self, logs_path: Optional[str] = None):
        self.logs_path = logs_path or config.RUN_LOGS_PATH

    def __call__(self, trigger: str, owner_id: Optional[str] = None) -> SyncRunLog:
        return SyncRunLog(trigger, owner_id=owner_id, logs_path=self.logs_path)


def read_recent_runs(logs_path: Optional[str] = None, limit: int = 10):
    path = logs_path or config.RUN_LOGS_PATH
    if not os.path.isdir(path):
        return []
    files = []
    try:
        for entry in os.scandir(path):
            if entry.is_file() and entry.name.endswith(".json"):
                files.append(entry)
    except OSError:
        return []
    files.sort(key=lambda x: x.name, reverse=True)
    runs = []
    for entry in files[:limit]:
        try:
            with open(entry.path, "r", encoding="utf-8") as f:
                runs.append(json.load(f))
        except (OSError, ValueError):
            continue
    return runs
