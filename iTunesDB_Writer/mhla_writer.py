"""
MHLA Writer - Write album list chunks for iTunesDB.

MHLA (album list) contains album entries that group tracks.
Each album entry (MHIA) contains MHODs for album name and artist.
"""

from iTunesDB_Parser.constants import ALBUM_STRING_FIELDS
from iTunesDB_Parser.layout import FormatDescriptor
from iTunesDB_Parser.model import Album

from .chunk_writer import finish_header, new_header, put_field
from .mhlt_writer import write_list
from .mhod_writer import MHOD_TYPE_ALBUM_ARTIST, MHOD_TYPE_ALBUM_NAME, string_object, sync_mhods


# MHIA header size (from libgpod)
MHIA_HEADER_SIZE = 88


def new_album(album_id: int, name: str, artist: str, desc: FormatDescriptor) -> Album:
    """
    A fresh MHIA for one (album, artist) pair.

    The 64-bit sql id at 0x14 reuses the album id, as libgpod does when no
    iTunes SQL database is around.
    """
    header = new_header(desc, "mhia", MHIA_HEADER_SIZE)
    desc.write("mhia", "sql_id", header, album_id)
    desc.write("mhia", "unk_0x1c", header, 2)

    mhods = []
    # MHOD type 200 = album name (for album items, not type 3 which is for tracks)
    if name:
        mhods.append(string_object(MHOD_TYPE_ALBUM_NAME, name, desc))
    # MHOD type 201 = artist (for album items, not type 22 which is for tracks)
    if artist:
        mhods.append(string_object(MHOD_TYPE_ALBUM_ARTIST, artist, desc))

    return Album(album_id=album_id, name=name, artist=artist, header=bytes(header), mhods=mhods)


def write_mhia(album: Album, desc: FormatDescriptor) -> bytes:
    """
    Write an MHIA (album item) chunk.

    Returns:
        Complete MHIA chunk with MHODs
    """
    header = bytearray(album.header)
    put_field(desc, "mhia", header, "album_id", album.album_id)
    album.header = bytes(header)
    album.mhods = sync_mhods(
        album.mhods,
        {mhod_type: getattr(album, attr) for mhod_type, attr in ALBUM_STRING_FIELDS.items()},
        desc,
    )

    mhod_data = b"".join(m.raw for m in album.mhods)
    total_length = len(album.header) + len(mhod_data) + len(album.tail)
    out = finish_header(desc, "mhia", album.header, total_length=total_length, child_count=len(album.mhods))
    return out + mhod_data + album.tail


def write_mhla(albums: list[Album], list_header: bytes, desc: FormatDescriptor) -> bytes:
    return write_list(desc, "mhla", list_header, [write_mhia(album, desc) for album in albums])
