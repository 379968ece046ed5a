"""
MHIT Writer - Write track item chunks for iTunesDB.

MHIT chunks contain all metadata for a single track, plus child MHOD
chunks for strings (title, artist, path, etc.).

A decoded track is re-emitted from its own header bytes; only the fields
the Track model exposes are patched in. New tracks start from a header
filled with the values libgpod writes.

Based on libgpod's mk_mhit() in itdb_itunesdb.c
"""

import random

from iTunesDB_Parser.constants import TRACK_STRING_FIELDS
from iTunesDB_Parser.layout import FormatDescriptor, mac_to_unix, unix_to_mac
from iTunesDB_Parser.model import Track

from .chunk_writer import finish_header, new_header, put_field
from .mhod_writer import sync_mhods


def generate_dbid() -> int:
    """Generate a random 64-bit database ID for a track."""
    return random.getrandbits(64)


# File type codes (stored as big-endian 4-byte ASCII, read as little-endian int)
FILETYPE_CODES = {
    'mp3': 0x4D503320,   # "MP3 "
    'm4a': 0x4D344120,   # "M4A "
    'm4p': 0x4D345020,   # "M4P "
    'm4b': 0x4D344220,   # "M4B "
    'wav': 0x57415620,   # "WAV "
    'aif': 0x41494646,   # "AIFF"
    'aiff': 0x41494646,  # "AIFF"
    'aac': 0x41414320,   # "AAC "
}

FILETYPE_DESCRIPTIONS = {
    'mp3': "MPEG audio file",
    'm4a': "AAC audio file",
    'm4p': "Protected AAC audio file",
    'm4b': "AAC audio book file",
    'wav': "WAV audio file",
    'aif': "AIFF audio file",
    'aiff': "AIFF audio file",
    'aac': "AAC audio file",
}

# Media type constants
MEDIA_TYPE_AUDIO = 0x01
MEDIA_TYPE_PODCAST = 0x04


def filetype_code(extension: str) -> int:
    """Four character code for a file extension ('.mp3', 'M4A', ...); 0 if unknown."""
    return FILETYPE_CODES.get(extension.lower().lstrip('.'), 0)


def filetype_description(extension: str) -> str:
    ext = extension.lower().lstrip('.')
    return FILETYPE_DESCRIPTIONS.get(ext, f"{ext.upper()} audio file" if ext else "")


def new_mhit_header(desc: FormatDescriptor, dbid: int = 0, id_0x24: int = 0) -> bytes:
    """
    Header for a track that has never been on the device.

    Carries libgpod's fixed values; the modelled fields are filled in
    later by pack_mhit_header().
    """
    header = new_header(desc, "mhit", desc.mhit_header_size)
    length = len(header)

    defaults = {
        "visible": 1,
        "type2": 1,          # track type, always 1 for audio tracks
        "unk126": 0xFFFF,    # 0xFFFF for MP3/AAC
        "has_artwork": 2,    # 1 = has, 2 = no
        "mark_unplayed": 2,  # 2 = unplayed bullet
        "dbid2": dbid,       # backup copy of dbid
        "id_0x24": id_0x24,  # must match mhbd+0x24
        "unk_0x134": 0x808080808080,
        "unk_0x168": 1,
    }
    for name, value in defaults.items():
        # older layouts lack the iTunes 7 fields
        if desc.has("mhit", name, length):
            desc.write("mhit", name, header, value)

    return bytes(header)


def pack_mhit_header(track: Track, desc: FormatDescriptor) -> bytes:
    """Copy of the track's header with every modelled field written in."""
    header = bytearray(track.header)

    for name in ("track_id", "dbid", "size", "length", "bitrate", "filetype", "vbr",
                 "year", "track_number", "disc_number", "media_type", "album_id"):
        put_field(desc, "mhit", header, name, getattr(track, name))

    # samplerate is stored << 16, the low half is kept as found
    raw_rate = desc.read("mhit", "sample_rate", header, header_length=len(header))
    if raw_rate >> 16 != track.sample_rate:
        packed = ((track.sample_rate << 16) | (raw_rate & 0xFFFF)) & 0xFFFFFFFF
        put_field(desc, "mhit", header, "sample_rate", packed)
        put_field(desc, "mhit", header, "sample_rate_float", float(track.sample_rate))

    raw_added = desc.read("mhit", "date_added", header, header_length=len(header))
    if mac_to_unix(raw_added) != track.date_added:
        put_field(desc, "mhit", header, "date_added", unix_to_mac(track.date_added))

    return bytes(header)


def sync_track(track: Track, desc: FormatDescriptor) -> Track:
    """Make the track's raw header and MHODs agree with its attributes."""
    track.header = pack_mhit_header(track, desc)
    track.mhods = sync_mhods(
        track.mhods,
        {mhod_type: getattr(track, attr) for mhod_type, attr in TRACK_STRING_FIELDS.items()},
        desc,
    )
    return track


def write_mhit(track: Track, desc: FormatDescriptor) -> bytes:
    """
    Write a complete MHIT chunk with all child MHODs.

    Returns:
        Complete MHIT chunk bytes (header + MHODs + any bytes that
        followed the MHODs inside the original chunk)
    """
    sync_track(track, desc)

    mhod_data = b"".join(m.raw for m in track.mhods)
    total_length = len(track.header) + len(mhod_data) + len(track.tail)

    header = finish_header(desc, "mhit", track.header,
                           total_length=total_length, child_count=len(track.mhods))
    return header + mhod_data + track.tail
