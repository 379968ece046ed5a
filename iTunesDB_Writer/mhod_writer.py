"""
MHOD Writer - Write string/data chunks for iTunesDB.

MHOD chunks store strings (track titles, artist names, paths) and
other metadata in the iTunesDB. Each MHOD has a type that indicates
what kind of data it contains.

Based on libgpod's mk_mhod() in itdb_itunesdb.c
"""

from iTunesDB_Parser.constants import ENCODING_UTF16, POSITION_MHOD
from iTunesDB_Parser.layout import FormatDescriptor, MODERN
from iTunesDB_Parser.model import DataObject

from .chunk_writer import new_header


# MHOD type constants (from iTunesDB_Parser/constants.py)
MHOD_TYPE_TITLE = 1
MHOD_TYPE_LOCATION = 2
MHOD_TYPE_ALBUM = 3
MHOD_TYPE_ARTIST = 4
MHOD_TYPE_GENRE = 5
MHOD_TYPE_FILETYPE = 6
MHOD_TYPE_COMMENT = 8
MHOD_TYPE_COMPOSER = 12
MHOD_TYPE_ALBUM_NAME = 200
MHOD_TYPE_ALBUM_ARTIST = 201

MHOD_HEADER_SIZE = 24
STRING_HEADER_SIZE = 16


def write_mhod_string(mhod_type: int, value: str, desc: FormatDescriptor = MODERN) -> bytes:
    """
    Write a string MHOD chunk.

    String MHODs have this structure:
    - mhod header (24 bytes)
    - string data type header (16 bytes): encoding, byte length, 1, 0
    - UTF-16 encoded string, in the database's byte order

    Args:
        mhod_type: MHOD type (1=title, 2=location, etc.)
        value: String value to encode
        desc: layout of the target database

    Returns:
        Complete MHOD chunk as bytes
    """
    string_data = value.encode(desc.string_codec)

    data = new_header(desc, "mhod", MHOD_HEADER_SIZE)
    data.extend(bytes(STRING_HEADER_SIZE))
    desc.write("mhod", "total_length", data, len(data) + len(string_data))
    desc.write("mhod", "mhod_type", data, mhod_type)
    desc.write("mhod", "encoding", data, ENCODING_UTF16)
    desc.write("mhod", "string_length", data, len(string_data))
    desc.write("mhod", "unk_0x20", data, 1)

    return bytes(data) + string_data


def string_object(mhod_type: int, value: str, desc: FormatDescriptor = MODERN) -> DataObject:
    return DataObject(mhod_type, write_mhod_string(mhod_type, value, desc), value)


def write_mhod_position(position: int, desc: FormatDescriptor = MODERN) -> DataObject:
    """
    Type 100 MHOD that follows every MHIP: the item's play order position.

    24 byte header + position (4) + 16 bytes of zeros = 44 bytes.
    """
    data = new_header(desc, "mhod", MHOD_HEADER_SIZE)
    data.extend(bytes(20))
    desc.write("mhod", "total_length", data, len(data))
    desc.write("mhod", "mhod_type", data, POSITION_MHOD)
    desc.write("mhod", "position", data, position)
    return DataObject(POSITION_MHOD, bytes(data))


def sync_mhods(mhods: list[DataObject], values: dict[int, str], desc: FormatDescriptor) -> list[DataObject]:
    """
    Bring a record's string MHODs in line with its attributes.

    The first decodable MHOD of each type feeds the attribute on decode, so
    that is the one compared here: equal values keep their original bytes,
    changed values are re-encoded in place, cleared values are dropped, and
    values with no MHOD yet are appended. Everything else is left alone.
    """
    result = list(mhods)
    for mhod_type, value in values.items():
        value = value or ""
        index = next(
            (i for i, m in enumerate(result) if m.mhod_type == mhod_type and m.value is not None),
            None,
        )
        if index is None:
            if value:
                result.append(string_object(mhod_type, value, desc))
        elif not value:
            if result[index].value:
                del result[index]
        elif result[index].value != value:
            result[index] = string_object(mhod_type, value, desc)
    return result
