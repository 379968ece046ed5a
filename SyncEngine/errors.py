"""
Failures the sync engine reports.

All of them derive from SyncError and carry a `hints` tuple the command
line prints under the message. CorruptDatabase lives with the codec and is
re-exported here so callers only need one import.
"""

from iTunesDB_Parser.errors import CorruptDatabase, SyncError


class NotMounted(SyncError):
    hints = (
        "is the device plugged in? is the mount point correct?",
        "done a first-time sync with iTunes? is the itdb corrupt?",
    )


class UnreadableSource(SyncError):
    """The file to push does not exist or cannot be opened."""

    hints = ("does the file exist? is it readable?",)


class NoTag(UnreadableSource):
    """The file opened, but mutagen found no format or no tag block in it."""

    hints = ("file is invalid/incompatible, or lacks known tag",)


class CopyFailed(SyncError):
    hints = (
        "is the file supported for your device? is it valid?",
        "has the file moved? is your device still mounted?",
    )


class DeleteFailed(SyncError):
    hints = ("is the device read-only?",)


class WriteFailed(SyncError):
    """The new iTunesDB could not be written; the old one is still in place."""

    hints = (
        "done a first-time sync with iTunes? is the itdb corrupt?",
        "is the device full or read-only?",
    )


class NotFound(SyncError):
    hints = ("try `$ sssink list <mountpoint>` to see what is on the device.",)


class DuplicateTrack(SyncError):
    hints = ("a track with the same title, artist and album is already on the device.",)


class MissingArguments(SyncError):
    def __init__(self, usage: str):
        super().__init__("missing arguments")
        self.usage = usage
        self.hints = (f"usage: {usage}",)


__all__ = [
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
]
