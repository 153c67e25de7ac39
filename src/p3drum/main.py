"""Command line entry point: p3drum [options] <command> ..."""

import argparse
import logging
import math
import sys
from uuid import UUID

from p3drum.schemas.p3_config import P3Config, load_config
from p3drum.session.manager import SessionManager
from p3drum.storage import SessionStore, StorageError, default_base_dir


def _grid_size(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"grid size must be at least 1, got {n}")
    return n


def _bpm(value: str) -> float:
    try:
        bpm = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}")
    if not math.isfinite(bpm):
        raise argparse.ArgumentTypeError(f"BPM must be a finite number, got {value}")
    return bpm


def _session_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a session id: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="P3 Drum Machine session manager",
        prog="p3drum",
    )
    parser.add_argument("--root", help="Storage root (P3DrumMachine/ is created inside)")
    parser.add_argument("-c", "--config", help="Path to p3drum.toml", default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List saved sessions, most recent first")

    new = sub.add_parser("new", help="Create and save an empty session")
    new.add_argument("name")
    new.add_argument("--rows", type=_grid_size, default=None)
    new.add_argument("--columns", type=_grid_size, default=None)
    new.add_argument("--bpm", type=_bpm, default=None)

    show = sub.add_parser("show", help="Print a session's pads")
    show.add_argument("session_id", type=_session_id)

    delete = sub.add_parser("delete", help="Delete a session and its files")
    delete.add_argument("session_id", type=_session_id)

    imp = sub.add_parser("import", help="Copy an audio file into a session")
    imp.add_argument("session_id", type=_session_id)
    imp.add_argument("file")
    imp.add_argument("--name", default=None, help="Stored file name")

    rec = sub.add_parser("recordings", help="List a session's recording files")
    rec.add_argument("session_id", type=_session_id)

    tui = sub.add_parser("tui", help="Open the pad grid UI")
    tui.add_argument("session_id", type=_session_id, nargs="?", default=None)

    return parser


def _configure_logging(config: P3Config, verbose: bool):
    level = logging.DEBUG if verbose else getattr(
        logging, config.logging.level.upper(), logging.WARNING
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_list(store: SessionStore, args) -> int:
    sessions = store.list_sessions()
    if not sessions:
        print("No sessions.")
        return 0
    for s in sessions:
        modified = s.modified_at.strftime("%Y-%m-%d %H:%M")
        print(
            f"{s.id}  {s.name:<24} {s.bpm:6.1f} BPM  "
            f"{s.assigned_pads_count:3d} pads  {modified}"
        )
    return 0


def cmd_new(manager: SessionManager, args) -> int:
    session = manager.new_session(name=args.name, rows=args.rows, columns=args.columns)
    if args.bpm is not None and not manager.set_bpm(args.bpm):
        print(manager.last_error, file=sys.stderr)
        return 1
    if not manager.save_current_session():
        print(manager.last_error, file=sys.stderr)
        return 1
    print(session.id)
    return 0


def cmd_show(store: SessionStore, args) -> int:
    session = store.load_session(args.session_id)
    print(f"{session.name}  ({session.bpm:.1f} BPM, {session.rows}x{session.columns})")
    for pad in session.pads:
        if pad.is_empty:
            continue
        print(
            f"  [{pad.row},{pad.column}] {pad.display_name:<20} "
            f"{pad.mode.display_name:<7} vol {pad.volume:.2f}"
        )
    for recording in session.recordings:
        print(f"  rec: {recording.name} ({recording.duration:.1f}s)")
    return 0


def cmd_delete(store: SessionStore, args) -> int:
    if not store.session_exists(args.session_id):
        print(f"Session not found: {args.session_id}", file=sys.stderr)
        return 1
    store.delete_session(args.session_id)
    return 0


def cmd_import(store: SessionStore, args) -> int:
    if not store.session_exists(args.session_id):
        print(f"Session not found: {args.session_id}", file=sys.stderr)
        return 1
    destination = store.import_audio_file(args.file, args.session_id, name=args.name)
    print(destination)
    return 0


def cmd_recordings(store: SessionStore, args) -> int:
    for path in store.list_recordings(args.session_id):
        size = store.file_size(path)
        print(f"{path.name}  {size if size is not None else '?'} bytes")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.root:
        config.storage.root = args.root
    _configure_logging(config, args.verbose)

    try:
        store = SessionStore(default_base_dir(config.storage.root or None))
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "list":
            return cmd_list(store, args)
        if args.command == "show":
            return cmd_show(store, args)
        if args.command == "delete":
            return cmd_delete(store, args)
        if args.command == "import":
            return cmd_import(store, args)
        if args.command == "recordings":
            return cmd_recordings(store, args)

        manager = SessionManager(store, config)
        if args.command == "new":
            return cmd_new(manager, args)
        if args.command == "tui":
            from p3drum.tui.app import SessionApp

            SessionApp(manager, session_id=args.session_id).run()
            return 0
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.error(f"unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
