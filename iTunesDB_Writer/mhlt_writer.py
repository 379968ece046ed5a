"""
MHLT Writer - Write track list chunks for iTunesDB.

MHLT (track list) contains all MHIT (track) chunks. MHLP and MHLA share
the same shape: a header whose third word is the child count, followed
directly by the children.
"""

from iTunesDB_Parser.layout import FormatDescriptor
from iTunesDB_Parser.model import Track

from .chunk_writer import finish_header, new_header
from .mhit_writer import write_mhit


# List header size (mhlt, mhlp and mhla all use 92)
LIST_HEADER_SIZE = 92


def new_list_header(desc: FormatDescriptor, list_tag: str) -> bytes:
    return bytes(new_header(desc, list_tag, LIST_HEADER_SIZE))


def write_list(desc: FormatDescriptor, list_tag: str, list_header: bytes, children: list[bytes]) -> bytes:
    header = finish_header(desc, list_tag, list_header, count=len(children))
    return header + b"".join(children)


def write_mhlt(tracks: list[Track], list_header: bytes, desc: FormatDescriptor) -> bytes:
    """
    Write a complete MHLT chunk with all tracks, in stored order.

    Returns:
        Complete MHLT chunk bytes
    """
    return write_list(desc, "mhlt", list_header, [write_mhit(track, desc) for track in tracks])
