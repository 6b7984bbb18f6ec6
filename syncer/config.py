# Configuration for the device-side progress sync process.

import os


SERVER_URL = os.environ.get("SYNCER_SERVER_URL", "http://127.0.0.1:5000")

REQUEST_TIMEOUT = float(os.environ.get("SYNCER_REQUEST_TIMEOUT", "10"))

LOCAL_DATABASE_URL = os.environ.get(
    "SYNCER_LOCAL_DATABASE_URL",
    "sqlite:///" + os.path.join(os.path.expanduser("~"), ".jangji", "local.db"),
)

RUN_LOGS_PATH = os.environ.get(
    "SYNCER_RUN_LOGS_PATH",
    os.path.join(os.path.expanduser("~"), ".jangji", "run_logs"),
)

MERGE_BOOKMARKS = os.environ.get("SYNCER_MERGE_BOOKMARKS", "0").lower() in ("1", "true", "yes")

WATCH_INTERVAL = float(os.environ.get("SYNCER_WATCH_INTERVAL", "15"))

# Owner used for progress recorded while nobody is logged in.
ANONYMOUS_OWNER = "default"
