#!/usr/bin/env python3
"""
yCard command-line host
=======================
Drives an editing session over files instead of an editor widget: the file
content is mounted as the editor text, one toolbar action runs, and its
notice is printed.

Usage:
    # Check a yCard file against the structural rules
    ycard validate contacts.yaml

    # Validate and persist under the "ycard-data" key
    ycard save contacts.yaml --store ycard_store.json

    # Compare an edited file against the text it was loaded from
    ycard diff contacts.yaml --baseline contacts.orig.yaml

    # Print the persisted record / the example document
    ycard show --store ycard_store.json
    ycard example

Exit codes: 0 success (or no changes), 1 rejected input (or changes found
for diff), 2 I/O or storage failure.

The store path defaults to $YCARD_STORE_PATH, else ./ycard_store.json.
"""

import argparse
import json
import logging
import os
import sys

from ycard.activity_log import format_entry
from ycard.errors import CorruptRecordError, StorageReadError
from ycard.parse_ycard import read_document_text
from ycard.persist_ycard import JsonFileBackend, PersistenceStore, SaveFailed
from ycard.session import DEFAULT_YCARD, EditorSession, TextBuffer
from ycard.snapshot_diff import Changes

DEFAULT_STORE_PATH = "ycard_store.json"


# ─── Utility ────────────────────────────────────────────────────────────────

def warn(msg):
    """Print warning to stderr."""
    print(f"WARNING: {msg}", file=sys.stderr)


def error(msg):
    print(f"ERROR: {msg}", file=sys.stderr)


def read_or_report(path):
    """File text, or None after reporting the read error."""
    try:
        return read_document_text(path)
    except (OSError, UnicodeDecodeError) as e:
        error(f"Cannot read {path}: {e}")
        return None


def print_outcome(outcome):
    if outcome.notice is not None:
        print(outcome.notice.title)
        print()
        print(outcome.notice.body)
    else:
        print(outcome.message)


def print_log(session):
    print()
    print("Activity Logs")
    print("-" * 72)
    entries = session.log.entries()
    if not entries:
        print("No activity yet")
    for entry in entries:
        print(format_entry(entry))


def open_session(text, store_path=None):
    backend = JsonFileBackend(store_path) if store_path else None
    session = EditorSession(backend=backend)
    buffer = TextBuffer(text)
    session.mount(buffer)
    return session, buffer


# ─── Commands ───────────────────────────────────────────────────────────────

def cmd_validate(args):
    text = read_or_report(args.file)
    if text is None:
        return 2
    session, _ = open_session(text)
    outcome = session.validate()
    print_outcome(outcome)
    if args.show_log:
        print_log(session)
    return 0 if outcome.ok else 1


def cmd_save(args):
    text = read_or_report(args.file)
    if text is None:
        return 2
    session, _ = open_session(text, args.store)
    outcome = session.save()
    print_outcome(outcome)
    if args.show_log:
        print_log(session)
    if outcome.ok:
        return 0
    return 2 if isinstance(outcome.payload, SaveFailed) else 1


def cmd_diff(args):
    baseline = read_or_report(args.baseline)
    current = read_or_report(args.file)
    if baseline is None or current is None:
        return 2
    session, buffer = open_session(baseline)
    buffer.set_value(current)
    outcome = session.diff()
    if isinstance(outcome.payload, Changes):
        sys.stdout.write(outcome.payload.unified_diff(fromfile=args.baseline, tofile=args.file))
    else:
        print("No changes")
    if args.show_log:
        print_log(session)
    return 1 if isinstance(outcome.payload, Changes) else 0


def cmd_show(args):
    store = PersistenceStore(JsonFileBackend(args.store))
    try:
        document = store.load()
    except (StorageReadError, CorruptRecordError) as e:
        error(str(e))
        return 2
    if document is None:
        warn(f"No yCard data saved under '{store.key}' in {args.store}")
        return 1
    print(json.dumps(document, ensure_ascii=False, indent=2))
    return 0


def cmd_example(args):
    sys.stdout.write(DEFAULT_YCARD)
    return 0


# ─── Main ───────────────────────────────────────────────────────────────────

def build_parser():
    default_store = os.environ.get("YCARD_STORE_PATH", DEFAULT_STORE_PATH)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--show-log", action="store_true",
        help="Print the activity log after the action",
    )

    parser = argparse.ArgumentParser(
        prog="ycard",
        description="Validate, save and diff yCard contact documents.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Sub-command")

    val_parser = subparsers.add_parser("validate", parents=[common], help="Validate a yCard file")
    val_parser.add_argument("file", help="Path to the yCard YAML file")
    val_parser.set_defaults(func=cmd_validate)

    save_parser = subparsers.add_parser("save", parents=[common], help="Validate and persist a yCard file")
    save_parser.add_argument("file", help="Path to the yCard YAML file")
    save_parser.add_argument(
        "--store", default=default_store,
        help=f"Path to the JSON key-value store (default: {default_store})",
    )
    save_parser.set_defaults(func=cmd_save)

    diff_parser = subparsers.add_parser("diff", parents=[common], help="Diff a file against its baseline")
    diff_parser.add_argument("file", help="Edited yCard file")
    diff_parser.add_argument("--baseline", required=True, help="Text the editor was loaded with")
    diff_parser.set_defaults(func=cmd_diff)

    show_parser = subparsers.add_parser("show", help="Print the persisted yCard record")
    show_parser.add_argument(
        "--store", default=default_store,
        help=f"Path to the JSON key-value store (default: {default_store})",
    )
    show_parser.set_defaults(func=cmd_show)

    ex_parser = subparsers.add_parser("example", help="Print the example yCard document")
    ex_parser.set_defaults(func=cmd_example)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    if not getattr(args, "func", None):
        parser.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
