"""
MHYP Writer - Write playlist chunks for iTunesDB.

Structure of an MHYP:
  header (184 bytes)
  mhod × N   (name, column prefs, and for the master playlist the
              type 52/53 library indices)
  mhip × M   (one per track reference)

Based on libgpod's write_playlist() in itdb_itunesdb.c
"""

import random
import time

from iTunesDB_Parser.constants import PLAYLIST_NAME_MHOD
from iTunesDB_Parser.layout import FormatDescriptor, unix_to_mac
from iTunesDB_Parser.model import Playlist

from .chunk_writer import finish_header, new_header, put_field
from .mhip_writer import write_mhip
from .mhod_writer import string_object, sync_mhods


# MHYP header size (libgpod)
MHYP_HEADER_SIZE = 184

PLAYLIST_KIND_NORMAL = 0
PLAYLIST_KIND_MASTER = 1


def new_playlist(name: str, desc: FormatDescriptor, master: bool = False, id_0x24: int = 0) -> Playlist:
    header = new_header(desc, "mhyp", MHYP_HEADER_SIZE)
    playlist_id = random.getrandbits(64)

    desc.write("mhyp", "timestamp", header, unix_to_mac(int(time.time())))
    desc.write("mhyp", "id_0x24", header, id_0x24)

    return Playlist(
        name=name,
        kind=PLAYLIST_KIND_MASTER if master else PLAYLIST_KIND_NORMAL,
        playlist_id=playlist_id,
        header=bytes(header),
        mhods=[string_object(PLAYLIST_NAME_MHOD, name, desc)] if name else [],
    )


def write_mhyp(playlist: Playlist, desc: FormatDescriptor) -> bytes:
    header = bytearray(playlist.header)
    put_field(desc, "mhyp", header, "kind", playlist.kind)
    put_field(desc, "mhyp", header, "playlist_id", playlist.playlist_id)
    playlist.header = bytes(header)
    playlist.mhods = sync_mhods(playlist.mhods, {PLAYLIST_NAME_MHOD: playlist.name}, desc)

    mhod_data = b"".join(m.raw for m in playlist.mhods)
    item_data = b"".join(write_mhip(item, desc) for item in playlist.items)
    total_length = len(playlist.header) + len(mhod_data) + len(item_data) + len(playlist.tail)

    out = finish_header(
        desc, "mhyp", playlist.header,
        total_length=total_length,
        child_count=len(playlist.mhods),
        item_count=len(playlist.items),
    )
    return out + mhod_data + item_data + playlist.tail
