"""Command-line interface for inspecting and driving the sync state."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml

from chat_sync.exporters import get_exporter
from chat_sync.hook import SyncHook
from chat_sync.host import TranscriptHost
from chat_sync.settings import parse_setting_value
from chat_sync.state import SyncState
from chat_sync.storage import SqliteKeyValueStore

DEFAULT_DB = "data/chat_sync.db"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chat turn memory sync")
    parser.add_argument("--db", default=DEFAULT_DB, help="Path to the sync state SQLite DB")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Show queue size, last sync time and endpoint")
    subparsers.add_parser("flush", help="Re-send payloads buffered while offline")
    subparsers.add_parser("test", help="Send a probe payload to the endpoint")

    config_parser = subparsers.add_parser("config", help="Show or change settings")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="Print current settings")
    set_parser = config_sub.add_parser("set", help="Change settings (KEY=VALUE ...)")
    set_parser.add_argument("assignments", nargs="+", metavar="KEY=VALUE")

    export_parser = subparsers.add_parser("export", help="Dump queued payloads to a file")
    export_parser.add_argument("output", help="Output file path")
    export_parser.add_argument("--format", choices=["json", "yaml"], default=None,
                               help="Output format (default: from file extension)")

    replay_parser = subparsers.add_parser("replay", help="Sync a saved transcript (JSON or YAML)")
    replay_parser.add_argument("transcript", help="Transcript file with character, chatId and messages")
    replay_parser.add_argument("--no-full", action="store_true",
                               help="Skip the full-conversation sync at the end")

    return parser


def _dump(data: dict) -> None:
    sys.stdout.write(yaml.safe_dump(data, allow_unicode=True, sort_keys=False))


def run_status(args: argparse.Namespace) -> int:
    hook = SyncHook.from_path(TranscriptHost([]), args.db)
    try:
        _dump(hook.status())
    finally:
        hook.stop()
    return 0


def run_flush(args: argparse.Namespace) -> int:
    hook = SyncHook.from_path(TranscriptHost([]), args.db)
    try:
        result = hook.flush()
        print(f"Flushed {result.flushed_count}, {result.remaining_count} still queued")
        return 0 if result.remaining_count == 0 else 1
    finally:
        hook.stop()


def run_test(args: argparse.Namespace) -> int:
    hook = SyncHook.from_path(TranscriptHost([]), args.db)
    try:
        result = hook.test_connection()
        if result.ok:
            print(f"Connection OK: {hook.state.settings.endpoint_url}")
            return 0
        print(f"Connection failed: {result.error.message}")
        return 1
    finally:
        hook.stop()


def run_config(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    store = SqliteKeyValueStore(args.db)
    try:
        settings_store = SyncState.load(store).settings_store
        if args.config_command == "set":
            changes: dict[str, object] = {}
            for assignment in args.assignments:
                key, sep, raw = assignment.partition("=")
                if not sep:
                    parser.error(f"Expected KEY=VALUE, got {assignment!r}")
                try:
                    changes[key] = parse_setting_value(key, raw)
                except KeyError:
                    parser.error(f"Unknown setting {key!r}")
                except ValueError as exc:
                    parser.error(str(exc))
            settings_store.update(**changes)
        _dump(settings_store.settings.to_dict())
    finally:
        store.close()
    return 0


def run_export(args: argparse.Namespace) -> int:
    output = Path(args.output)
    fmt = args.format or (output.suffix.lstrip(".") or "json")
    exporter = get_exporter(fmt)
    store = SqliteKeyValueStore(args.db)
    try:
        state = SyncState.load(store)
        status = {
            "endpointUrl": state.settings.endpoint_url,
            "lastSyncTime": state.settings.last_sync_time,
        }
        count = exporter.export(state.queue.snapshot(), status, output)
    finally:
        store.close()
    print(f"Exported {count} queued payloads to {output}")
    return 0


def run_replay(args: argparse.Namespace) -> int:
    with open(args.transcript, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    host = TranscriptHost.from_dict(data)
    hook = SyncHook.from_path(host, args.db)
    try:
        hook.start()
        turns = host.replay()
        hook.aggregator.disarm()
        if not args.no_full:
            hook.aggregator.sync_full_conversation()
        print(f"Replayed {turns} turns, {len(hook.state.queue)} payloads queued")
    finally:
        hook.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if args.command == "status":
        return run_status(args)
    if args.command == "flush":
        return run_flush(args)
    if args.command == "test":
        return run_test(args)
    if args.command == "config":
        return run_config(args, parser)
    if args.command == "export":
        return run_export(args)
    if args.command == "replay":
        return run_replay(args)
    parser.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
