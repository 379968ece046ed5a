"""
sssink - sync music to and from an iPod from the command line.

Run with: sssink <command> [args...]
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from SyncEngine.device import (
    copy_from_device,
    from_location,
    mangle_filename,
    validate_mount,
)
from SyncEngine.errors import CopyFailed, MissingArguments, SyncError
from SyncEngine.library_editor import LibraryEditor, find_tracks, list_tracks, load_library
from SyncEngine.settings import AppSettings

VERSION = "1.0.0"
HOMEPAGE = "https://github.com/mutmux/sssink"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    name: str
    usage: str
    desc: str
    min_args: int
    handler: Callable[[list[str], AppSettings], int]


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("mutagen").setLevel(logging.WARNING)


def print_help(registry: dict[str, Command]) -> None:
    print(f"sssink {VERSION} <{HOMEPAGE}>\n")
    for command in registry.values():
        print(f"{command.name}\t{command.usage}\n\t{command.desc}\n")


def print_error(error: SyncError) -> None:
    print(f"ERROR: {error}")
    if error.hints:
        print()
        for hint in error.hints:
            print(hint)


def _editor(library, mount, settings: AppSettings) -> LibraryEditor:
    return LibraryEditor(
        library,
        mount,
        reject_duplicates=settings.reject_duplicates,
        music_folder_count=settings.music_folder_count,
        backup=settings.backup_database,
    )


# ── Commands ───────────────────────────────────────────────────────────────


def cmd_list(args: list[str], settings: AppSettings) -> int:
    mount = validate_mount(args[0])
    library = load_library(mount)

    tracks = list_tracks(library)
    for track in tracks:
        print(f"{track.title} - {track.artist}")
    print(f"\n{len(tracks)} tracks total on {args[0]}")
    return 0


def cmd_push(args: list[str], settings: AppSettings) -> int:
    mount = validate_mount(args[0])
    library = load_library(mount)

    editor = _editor(library, mount, settings)
    for source in args[1:]:
        editor.add(source)
    editor.commit()

    for source in args[1:]:
        print(f"synced '{Path(source).name}' to {args[0]} :)")
    return 0


def _free_path(directory: Path, name: str) -> Path:
    """`name` inside `directory`, with a numeric suffix if it is taken."""
    stem, ext = os.path.splitext(name)
    candidate = directory / name
    n = 1
    while candidate.exists():
        candidate = directory / f"{stem} {n}{ext}"
        n += 1
    return candidate


def cmd_pull(args: list[str], settings: AppSettings) -> int:
    mount = validate_mount(args[0])
    library = load_library(mount)
    tracks = find_tracks(library, args[1])

    destination = Path(args[2]) if len(args) > 2 else Path.cwd()
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CopyFailed(f"cannot create {destination}: {e}") from e

    for track in tracks:
        if not track.location:
            logger.warning(f"Track {track.track_id} ('{track.title}') has no file on the device, skipping")
            continue
        name = mangle_filename(f"{track.artist} - {track.title}{track.extension}")
        target = _free_path(destination, name)
        copy_from_device(mount, from_location(track.location), target)
        print(f"pulled '{target.name}' from {args[0]}")
    return 0


def cmd_del(args: list[str], settings: AppSettings) -> int:
    mount = validate_mount(args[0])
    library = load_library(mount)

    editor = _editor(library, mount, settings)
    if args[1] == "*":
        count = editor.remove("*")
    else:
        count = sum(editor.remove(track.track_id) for track in find_tracks(library, args[1]))
    editor.commit()

    print(f"deleted {count} track(s) from {args[0]}")
    return 0


def build_registry() -> dict[str, Command]:
    registry: dict[str, Command] = {}

    def cmd_help(args: list[str], settings: AppSettings) -> int:
        print_help(registry)
        return 0

    for command in (
        Command("help", "$ sssink help", "print helpful information", 0, cmd_help),
        Command("list", "$ sssink list <mountpoint>", "list music stored on device", 1, cmd_list),
        Command("push", "$ sssink push <mountpoint> <track>", "send track to device", 2, cmd_push),
        Command("pull", "$ sssink pull <mountpoint> <track> (destination)", "get track from device", 2, cmd_pull),
        Command("del", "$ sssink del <mountpoint> <track>", "delete track from device", 2, cmd_del),
    ):
        registry[command.name] = command
    return registry


def dispatch(argv: list[str], registry: dict[str, Command], settings: AppSettings) -> int:
    """Run one command line (command name first). Returns the exit code."""
    if not argv:
        print_help(registry)
        return 1

    name, args = argv[0], argv[1:]
    command = registry.get(name)
    if command is None:
        print("unknown command. try `$ sssink help`.")
        return 1

    try:
        if len(args) < command.min_args:
            raise MissingArguments(command.usage)
        return command.handler(args, settings)
    except SyncError as e:
        logger.debug(f"{name} failed", exc_info=True)
        print_error(e)
        return 1


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="sssink",
        description="sync music to and from an iPod",
        epilog="note: nothing locks the device database; do not run two sssink commands "
               "against the same device at once.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Settings file (default: settings.json in the sssink config directory)",
    )

    parser.add_argument("command", nargs="?", help="help, list, push, pull or del")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="command arguments")

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    settings = AppSettings.load(args.config)
    setup_logging(verbose=args.verbose or settings.verbose)

    command_line = [args.command, *args.args] if args.command else []
    return dispatch(command_line, build_registry(), settings)


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
