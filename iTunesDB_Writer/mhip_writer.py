"""
MHIP Writer - Write playlist item chunks for iTunesDB.

MHIP chunks are playlist entries that reference tracks by their ID.
Each playlist (MHYP) contains MHIP entries for each track in the playlist.

Based on libgpod's mk_mhip() in itdb_itunesdb.c
"""

from iTunesDB_Parser.layout import FormatDescriptor
from iTunesDB_Parser.model import PlaylistItem

from .chunk_writer import finish_header, new_header, put_field
from .mhod_writer import write_mhod_position


# MHIP header size - libgpod uses 76 bytes
MHIP_HEADER_SIZE = 76


def new_playlist_item(track_id: int, position: int, desc: FormatDescriptor, group_id: int = 0) -> PlaylistItem:
    """
    Playlist entry for a track, with its type 100 position MHOD.

    Args:
        track_id: The track's ID (from MHIT)
        position: Position in playlist (0-based)
        group_id: Unique ID for this entry (offset 0x14). In libgpod this is
                  called "podcastgroupid" but it is used for all playlists.
    """
    header = new_header(desc, "mhip", MHIP_HEADER_SIZE)
    desc.write("mhip", "group_id", header, group_id)
    return PlaylistItem(
        track_id=track_id,
        header=bytes(header),
        mhods=[write_mhod_position(position, desc)],
    )


def write_mhip(item: PlaylistItem, desc: FormatDescriptor) -> bytes:
    header = bytearray(item.header)
    put_field(desc, "mhip", header, "track_id", item.track_id)
    put_field(desc, "mhip", header, "podcast_group_flag", item.podcast_group_flag)
    item.header = bytes(header)

    mhod_data = b"".join(m.raw for m in item.mhods)
    total_length = len(item.header) + len(mhod_data) + len(item.tail)
    out = finish_header(desc, "mhip", item.header, total_length=total_length, child_count=len(item.mhods))
    return out + mhod_data + item.tail
