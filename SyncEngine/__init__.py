"""
SyncEngine - Bridge between the host filesystem and the iPod

Core components:
- device: mount validation, location mapping, safe copy/delete
- tag_reader: mutagen-based tag extraction for pushed files
- LibraryEditor: add/remove tracks with staged file operations and commit
- integrity: drops tracks whose file vanished, right before each write
- AppSettings: JSON-backed user settings
"""

from .device import (
    Mount,
    allocate_device_path,
    copy_from_device,
    copy_to_device,
    delete_from_device,
    from_location,
    mangle_filename,
    to_location,
    validate_mount,
)
from .errors import (
    CopyFailed,
    CorruptDatabase,
    DeleteFailed,
    DuplicateTrack,
    MissingArguments,
    NoTag,
    NotFound,
    NotMounted,
    SyncError,
    UnreadableSource,
    WriteFailed,
)
from .integrity import IntegrityReport, drop_missing_tracks
from .library_editor import LibraryEditor, TrackView, find_tracks, list_tracks, load_library
from .settings import AppSettings
from .tag_reader import TagInfo, extract

__all__ = [
    # Device
    "Mount",
    "validate_mount",
    "mangle_filename",
    "to_location",
    "from_location",
    "allocate_device_path",
    "copy_to_device",
    "copy_from_device",
    "delete_from_device",
    # Errors
    "SyncError",
    "CorruptDatabase",
    "NotMounted",
    "UnreadableSource",
    "NoTag",
    "CopyFailed",
    "DeleteFailed",
    "WriteFailed",
    "NotFound",
    "DuplicateTrack",
    "MissingArguments",
    # Library
    "LibraryEditor",
    "TrackView",
    "list_tracks",
    "find_tracks",
    "load_library",
    "IntegrityReport",
    "drop_missing_tracks",
    # Tags
    "TagInfo",
    "extract",
    # Settings
    "AppSettings",
]
