# Command line entry point for recording reading progress and syncing it with the server.

import argparse
import json
import logging
import os
import sys
import time
from typing import List, Optional

from . import config
from .local_store import LocalProgressStore
from .logger import SyncRunLogFactory, read_recent_runs
from .orchestrator import Authenticator, ConnectivityMonitor, SessionProvider, SyncOrchestrator
from .record import InvalidRecordError
from .remote import RemoteProgressClient, SyncError
from .tracker import ProgressTracker


logger = logging.getLogger("syncer")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Record Quran reading progress on this device and sync it with the Jangji server.",
    )
    parser.add_argument("--server", default=config.SERVER_URL, help="Base URL of the Jangji server.")
    parser.add_argument("--db", default=config.LOCAL_DATABASE_URL, help="SQLAlchemy URL of the local store.")
    parser.add_argument(
        "--username",
        default=os.environ.get("SYNCER_USERNAME"),
        help="Account used to authenticate against the server.",
    )
    parser.add_argument("--password", default=os.environ.get("SYNCER_PASSWORD"))
    parser.add_argument(
        "--owner",
        default=os.environ.get("SYNCER_OWNER"),
        help="Owner id to use locally when the server cannot be reached.",
    )
    parser.add_argument("--run-logs", default=config.RUN_LOGS_PATH, help="Directory for per-sync JSON logs.")
    parser.add_argument(
        "--merge-bookmarks",
        action="store_true",
        default=config.MERGE_BOOKMARKS,
        help="Union bookmarks from both sides instead of replacing them with the newer record's list.",
    )
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("login", help="Authenticate and print the owner id.")
    sub.add_parser("sync", help="Run one sync against the server.")
    save = sub.add_parser("save", help="Record the last read position, then sync if online.")
    save.add_argument("surah", type=int)
    save.add_argument("ayah", type=int)
    bookmark = sub.add_parser("bookmark", help="Toggle a bookmark, then sync if online.")
    bookmark.add_argument("surah", type=int)
    bookmark.add_argument("ayah", type=int)
    sub.add_parser("show", help="Print the local progress record.")
    sub.add_parser("history", help="Print recent sync attempts.")
    watch = sub.add_parser("watch", help="Keep probing connectivity and sync on every reconnect.")
    watch.add_argument("--interval", type=float, default=config.WATCH_INTERVAL)
    return parser.parse_args(argv)


def _print_record(record) -> None:
    if record is None:
        sys.stdout.write(f"No local progress{os.linesep}")
        return
    data = record.to_dict()
    data["bookmarks"] = [b.to_dict() for b in record.sorted_bookmarks()]
    sys.stdout.write(json.dumps(data, indent=2) + os.linesep)


def _watch(orchestrator: SyncOrchestrator, client: RemoteProgressClient, interval: float) -> None:
    logger.info("Watching %s every %ss", client.base_url, interval)
    orchestrator.attach()
    try:
        while True:
            time.sleep(interval)
            orchestrator.connectivity.probe(client)
    except KeyboardInterrupt:
        logger.info("Stopping watch")
    finally:
        orchestrator.detach()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[syncer] %(asctime)s %(levelname)s %(message)s",
    )

    if args.command == "history":
        for run in read_recent_runs(args.run_logs):
            sys.stdout.write(json.dumps(run) + os.linesep)
        return 0

    store = LocalProgressStore(args.db)
    client = RemoteProgressClient(args.server)
    session = SessionProvider()
    authenticate = Authenticator(client, session, args.username, args.password, fallback_owner=args.owner)
    connectivity = ConnectivityMonitor(online=False)
    orchestrator = SyncOrchestrator(
        store,
        client,
        session,
        connectivity,
        merge_bookmarks=args.merge_bookmarks,
        run_log=SyncRunLogFactory(args.run_logs),
        authenticate=authenticate,
    )

    try:
        if args.command == "login":
            if not (args.username and args.password):
                raise SystemExit("login needs --username and --password")
            try:
                owner_id = client.login(args.username, args.password)
            except SyncError as exc:
                raise SystemExit(f"Login failed: {exc}") from exc
            sys.stdout.write(f"{owner_id}{os.linesep}")
            return 0

        authenticate()
        connectivity.set_online(client.ping())

        if args.command == "sync":
            if session.owner_id is None:
                raise SystemExit("sync needs --username/--password or --owner")
            orchestrator.request_sync("manual")
            if orchestrator.last_outcome != "synced":
                return 1
            _print_record(store.get(session.owner_id))
            return 0

        if args.command == "watch":
            _watch(orchestrator, client, args.interval)
            return 0

        tracker = ProgressTracker(store, session, on_change=orchestrator.notify_local_change)
        if args.command == "save":
            _print_record(tracker.save_progress(args.surah, args.ayah))
        elif args.command == "bookmark":
            added = tracker.toggle_bookmark(args.surah, args.ayah)
            sys.stdout.write(f"Bookmark {'added' if added else 'removed'}: {args.surah}:{args.ayah}{os.linesep}")
        elif args.command == "show":
            _print_record(tracker.current())
        return 0
    except InvalidRecordError as exc:
        raise SystemExit(f"Invalid position: {exc}") from exc
    finally:
        store.dispose()


if __name__ == "__main__":
    sys.exit(main())
