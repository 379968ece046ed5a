"""
iTunesDB Parser module for sssink.

Decodes an iTunesDB image into the Library model. Little-endian and
byte-reversed (big-endian) databases are both understood; see layout.py.
"""

from .errors import CorruptDatabase, SyncError
from .layout import LEGACY, MODERN, FormatDescriptor, reversed_variant, select_descriptor
from .model import Album, DataObject, Dataset, DeviceCapabilities, Library, Playlist, PlaylistItem, Track
from .parser import decode, parse_itunesdb

__all__ = [
    "CorruptDatabase",
    "SyncError",
    "LEGACY",
    "MODERN",
    "FormatDescriptor",
    "reversed_variant",
    "select_descriptor",
    "Album",
    "DataObject",
    "Dataset",
    "DeviceCapabilities",
    "Library",
    "Playlist",
    "PlaylistItem",
    "Track",
    "decode",
    "parse_itunesdb",
]
