"""
MHLP Writer - Write playlist list chunks for iTunesDB.

MHLP (playlist list) contains all MHYP (playlist) chunks. Datasets 2
(playlists), 3 (podcasts) and 5 (smart playlists) all use it.
"""

from iTunesDB_Parser.layout import FormatDescriptor
from iTunesDB_Parser.model import Playlist

from .mhlt_writer import write_list
from .mhyp_writer import write_mhyp


def write_mhlp(playlists: list[Playlist], list_header: bytes, desc: FormatDescriptor) -> bytes:
    return write_list(desc, "mhlp", list_header, [write_mhyp(pl, desc) for pl in playlists])
