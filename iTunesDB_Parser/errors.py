"""
Error types shared by the iTunesDB codec and the sync engine.

Every error carries a short tuple of likely causes so the command line
front end can print something more useful than a traceback.
"""


class SyncError(Exception):
    """Base class for every failure sssink reports to the user."""

    hints: tuple[str, ...] = ()


class CorruptDatabase(SyncError):
    """The iTunesDB bytes could not be decoded into a consistent library."""

    hints = (
        "done a first-time sync with iTunes?",
        "is the itdb corrupt?",
    )
