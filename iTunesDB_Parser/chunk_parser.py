import struct

from .constants import identifier_readable_map
from .errors import CorruptDatabase
from .layout import FormatDescriptor

# list chunks carry a child count where other chunks carry a total length
LIST_CHUNKS = ("mhlt", "mhlp", "mhla")


def read_header(data, offset: int, desc: FormatDescriptor, parent_end: int) -> tuple[str, int, int]:
    """
    Read and bounds-check the common 12 byte chunk prefix.

    Returns (tag, header_length, total_length_or_count).
    """
    if offset < 0 or offset + 12 > parent_end:
        raise CorruptDatabase(f"chunk at 0x{offset:X} runs past its parent (ends at 0x{parent_end:X})")

    tag = desc.tag_name(bytes(data[offset:offset + 4]))
    header_length, third = struct.unpack_from(desc.byte_order + "II", data, offset + 4)

    if header_length < 12 or offset + header_length > parent_end:
        raise CorruptDatabase(f"{tag!r} at 0x{offset:X}: header length {header_length} is out of bounds")
    if tag not in LIST_CHUNKS and (third < header_length or offset + third > parent_end):
        raise CorruptDatabase(f"{tag!r} at 0x{offset:X}: total length {third} is out of bounds")

    return tag, header_length, third


def keep_header(data, offset: int, header_length: int, desc: FormatDescriptor, chunk: str, *recomputed: str) -> bytes:
    """Copy a chunk header, zeroing the length/count fields the writer recomputes."""
    header = bytearray(data[offset:offset + header_length])
    for name in recomputed:
        desc.write(chunk, name, header, 0, header_length=header_length)
    return bytes(header)


def parse_chunk(data, offset: int, desc: FormatDescriptor, parent_end: int, expected: str | None = None) -> dict:
    chunk_type, header_length, chunk_length = read_header(data, offset, desc, parent_end)

    if expected is not None and chunk_type != expected:
        raise CorruptDatabase(
            f"expected {identifier_readable_map.get(expected, expected)} ({expected!r}) "
            f"at 0x{offset:X}, found {chunk_type!r}"
        )

    args = (data, offset, header_length, chunk_length, desc, parent_end)

    match chunk_type:
        case "mhbd":
            # database
            from .mhbd_parser import parse_db
            return parse_db(*args)
        case "mhsd":
            # dataset
            from .mhsd_parser import parse_dataset
            return parse_dataset(*args)
        case "mhlt":
            # track list
            from .mhlt_parser import parse_trackList
            return parse_trackList(*args)
        case "mhit":
            # track item
            from .mhit_parser import parse_trackItem
            return parse_trackItem(*args)
        case "mhlp":
            # playlist list
            from .mhlp_parser import parse_playlistList
            return parse_playlistList(*args)
        case "mhyp":
            # playlist
            from .mhyp_parser import parse_playlist
            return parse_playlist(*args)
        case "mhip":
            # playlist item
            from .mhyp_parser import parse_playlistItem
            return parse_playlistItem(*args)
        case "mhod":
            # data object
            from .mhod_parser import parse_mhod
            return parse_mhod(*args)
        case "mhla":
            # album list
            from .mhla_parser import parse_albumList
            return parse_albumList(*args)
        case "mhia":
            # album item
            from .mhia_parser import parse_albumItem
            return parse_albumItem(*args)
        case _:
            raise CorruptDatabase(f"unknown chunk type {chunk_type!r} at 0x{offset:X}")
