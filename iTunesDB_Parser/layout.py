"""
Field layouts for iTunesDB chunks.

All iPod generations share the same chunk tree (mhbd > mhsd > mhlt > mhit >
mhod ...), but the headers grow from one database version to the next, and
some phone firmwares store the whole file byte-reversed: big-endian numbers
and four-byte tags spelled backwards ("dbhm" instead of "mhbd").

Instead of hard-coding '<I' at every offset, the parsers and writers go
through a FormatDescriptor. It knows the byte order, the tag spelling, and
the (offset, struct code) of every modelled field per chunk type. A field is
only read or written when it lies inside the header length the chunk
declares, so a short header from an old database decodes as zeros and is
never grown behind the firmware's back.

Based on libgpod's itdb_itunesdb.c (get32lint/get32bint and cts->reversed).
"""

import struct
from dataclasses import dataclass, field, replace
from typing import Mapping, NamedTuple

from .constants import MAC_EPOCH_OFFSET
from .errors import CorruptDatabase


class Field(NamedTuple):
    offset: int
    code: str  # struct format character, byte order excluded

    @property
    def size(self) -> int:
        return struct.calcsize("<" + self.code)


# Minimum mhbd header libgpod accepts
MIN_MHBD_HEADER = 0x68

# First database version written by iTunes 7 (album list, longer mhit)
MODERN_VERSION = 0x13


_MHBD = {
    "header_length": Field(0x04, "I"),
    "total_length": Field(0x08, "I"),
    "unk_0x0c": Field(0x0C, "I"),
    "version": Field(0x10, "I"),
    "child_count": Field(0x14, "I"),
    "db_id": Field(0x18, "Q"),
    "platform": Field(0x20, "H"),
    "unk_0x22": Field(0x22, "H"),
    "id_0x24": Field(0x24, "Q"),
    "hash_scheme": Field(0x30, "H"),
    "lib_persistent_id": Field(0x48, "Q"),
    "unk_0x50": Field(0x50, "I"),
    "unk_0x54": Field(0x54, "I"),
    "timezone": Field(0x6C, "i"),
    "unk_0x70": Field(0x70, "H"),
}

_MHSD = {
    "header_length": Field(0x04, "I"),
    "total_length": Field(0x08, "I"),
    "kind": Field(0x0C, "I"),
}

# mhlt, mhlp and mhla carry a child count where other chunks carry a length
_LIST = {
    "header_length": Field(0x04, "I"),
    "count": Field(0x08, "I"),
}

_MHIT_LEGACY = {
    "header_length": Field(0x04, "I"),
    "total_length": Field(0x08, "I"),
    "child_count": Field(0x0C, "I"),
    "track_id": Field(0x10, "I"),
    "visible": Field(0x14, "I"),
    "filetype": Field(0x18, "I"),
    "vbr": Field(0x1C, "B"),
    "type2": Field(0x1D, "B"),
    "time_modified": Field(0x20, "I"),
    "size": Field(0x24, "I"),
    "length": Field(0x28, "I"),
    "track_number": Field(0x2C, "I"),
    "year": Field(0x34, "I"),
    "bitrate": Field(0x38, "I"),
    "sample_rate": Field(0x3C, "I"),  # Hz << 16
    "disc_number": Field(0x5C, "I"),
    "date_added": Field(0x68, "I"),
    "dbid": Field(0x70, "Q"),
    "unk126": Field(0x7E, "H"),
    "sample_rate_float": Field(0x88, "f"),
    "has_artwork": Field(0xA4, "B"),
    "dbid2": Field(0xA8, "Q"),
    "mark_unplayed": Field(0xB2, "B"),
    "media_type": Field(0xD0, "I"),
}

_MHIT_MODERN = dict(
    _MHIT_LEGACY,
    album_id=Field(0x120, "I"),
    id_0x24=Field(0x124, "Q"),
    size2=Field(0x12C, "I"),
    unk_0x134=Field(0x134, "Q"),
    unk_0x168=Field(0x168, "I"),
)

_MHOD = {
    "header_length": Field(0x04, "I"),
    "total_length": Field(0x08, "I"),
    "mhod_type": Field(0x0C, "I"),
    # string body
    "encoding": Field(0x18, "I"),
    "string_length": Field(0x1C, "I"),
    "unk_0x20": Field(0x20, "I"),
    # type 100 inside a playlist item
    "position": Field(0x18, "I"),
    # type 52 library index
    "sort_type": Field(0x18, "I"),
    "index_count": Field(0x1C, "I"),
}

_MHYP = {
    "header_length": Field(0x04, "I"),
    "total_length": Field(0x08, "I"),
    "child_count": Field(0x0C, "I"),
    "item_count": Field(0x10, "I"),
    "kind": Field(0x14, "B"),
    "timestamp": Field(0x18, "I"),
    "playlist_id": Field(0x1C, "Q"),
    "id_0x24": Field(0x3C, "Q"),
}

_MHIP = {
    "header_length": Field(0x04, "I"),
    "total_length": Field(0x08, "I"),
    "child_count": Field(0x0C, "I"),
    "podcast_group_flag": Field(0x10, "I"),
    "group_id": Field(0x14, "I"),
    "track_id": Field(0x18, "I"),
    "timestamp": Field(0x1C, "I"),
}

_MHIA = {
    "header_length": Field(0x04, "I"),
    "total_length": Field(0x08, "I"),
    "child_count": Field(0x0C, "I"),
    "album_id": Field(0x10, "I"),
    "sql_id": Field(0x14, "Q"),
    "unk_0x1c": Field(0x1C, "I"),
}


def _tables(mhit: dict) -> dict[str, Mapping[str, Field]]:
    return {
        "mhbd": _MHBD,
        "mhsd": _MHSD,
        "mhlt": _LIST,
        "mhlp": _LIST,
        "mhla": _LIST,
        "mhit": mhit,
        "mhod": _MHOD,
        "mhyp": _MHYP,
        "mhip": _MHIP,
        "mhia": _MHIA,
    }


@dataclass(frozen=True, eq=True)
class FormatDescriptor:
    """Byte layout of one iTunesDB family."""

    name: str
    byte_order: str = "<"
    reversed_tags: bool = False
    # header size used when a brand new mhit has no sibling to copy from
    mhit_header_size: int = 0x248
    tables: Mapping[str, Mapping[str, Field]] = field(default_factory=dict, compare=False, repr=False)

    @property
    def string_codec(self) -> str:
        return "utf-16-le" if self.byte_order == "<" else "utf-16-be"

    def tag(self, name: str) -> bytes:
        """On-disk spelling of a chunk tag."""
        raw = name.encode("ascii")
        return raw[::-1] if self.reversed_tags else raw

    def tag_name(self, raw: bytes) -> str:
        """Normalized tag name for four bytes read from disk."""
        if self.reversed_tags:
            raw = raw[::-1]
        return raw.decode("ascii", errors="replace")

    def field(self, chunk: str, name: str) -> Field:
        return self.tables[chunk][name]

    def has(self, chunk: str, name: str, header_length: int) -> bool:
        f = self.tables[chunk].get(name)
        return f is not None and f.offset + f.size <= header_length

    def read(self, chunk: str, name: str, buf, offset: int = 0, header_length: int | None = None):
        """Read a field, or 0 when it lies past the declared header."""
        f = self.field(chunk, name)
        if header_length is not None and f.offset + f.size > header_length:
            return 0
        return struct.unpack_from(self.byte_order + f.code, buf, offset + f.offset)[0]

    def write(self, chunk: str, name: str, buf: bytearray, value, offset: int = 0,
              header_length: int | None = None) -> None:
        """Write a field in place; silently skipped when the header is too short."""
        f = self.field(chunk, name)
        if header_length is not None and f.offset + f.size > header_length:
            return
        struct.pack_into(self.byte_order + f.code, buf, offset + f.offset, value)


LEGACY = FormatDescriptor("legacy", mhit_header_size=0x184, tables=_tables(_MHIT_LEGACY))
MODERN = FormatDescriptor("modern", mhit_header_size=0x248, tables=_tables(_MHIT_MODERN))


def reversed_variant(base: FormatDescriptor) -> FormatDescriptor:
    """Big-endian, tag-reversed flavour of a descriptor."""
    return replace(base, name=base.name + "-reversed", byte_order=">", reversed_tags=True)


def mac_to_unix(mac_timestamp: int) -> int:
    """Mac HFS+ timestamp to unix seconds; 0 stays 0 (never set)."""
    return mac_timestamp - MAC_EPOCH_OFFSET if mac_timestamp else 0


def unix_to_mac(unix_timestamp: int) -> int:
    if not unix_timestamp:
        return 0
    return (unix_timestamp + MAC_EPOCH_OFFSET) & 0xFFFFFFFF


def select_descriptor(data: bytes) -> FormatDescriptor:
    """
    Pick the descriptor for a database from its magic and version field.

    Raises:
        CorruptDatabase: unknown magic or data too short to hold a version
    """
    if len(data) < MIN_MHBD_HEADER:
        raise CorruptDatabase(
            f"database is {len(data)} bytes, shorter than the minimum header ({MIN_MHBD_HEADER})"
        )

    magic = bytes(data[:4])
    if magic == b"mhbd":
        byte_order, is_reversed = "<", False
    elif magic == b"dbhm":
        byte_order, is_reversed = ">", True
    else:
        raise CorruptDatabase(f"not an iTunesDB (magic {magic!r})")

    version = struct.unpack_from(byte_order + "I", data, 0x10)[0]
    base = MODERN if version >= MODERN_VERSION else LEGACY
    return reversed_variant(base) if is_reversed else base
