import logging
import os
import struct

from .constants import LIBRARY_INDEX_MHOD, version_map
from .errors import CorruptDatabase
from .layout import select_descriptor
from .model import Library

logger = logging.getLogger(__name__)

# type 52 mhod: sort type at 0x18, index count at 0x1C, indices from 0x48
LIBRARY_INDEX_OFFSET = 0x48


def decode(data: bytes) -> Library:
    """
    Decode a complete iTunesDB image.

    Raises:
        CorruptDatabase: bad magic, lengths that overrun the file or their
            parent, unexpected chunk tags, duplicate track ids, or playlist
            items and library indices pointing at tracks that do not exist
    """
    desc = select_descriptor(data)

    from .chunk_parser import parse_chunk
    try:
        result = parse_chunk(data, 0, desc, len(data), expected="mhbd")
    except struct.error as e:
        raise CorruptDatabase(f"truncated chunk: {e}") from e

    library = result["result"]
    _validate(library)

    library.next_track_id = max(library.track_ids, default=0) + 1

    logger.debug(
        "Decoded %s iTunesDB v0x%X (%s): %d tracks, %d playlists, %d albums",
        desc.name, library.version, version_map.get(library.version, "unknown iTunes"),
        len(library.tracks), len(library.playlists), len(library.albums),
    )
    return library


def _validate(library: Library) -> None:
    desc = library.descriptor

    if library.dataset(1) is None:
        raise CorruptDatabase("database has no track list")

    ids = set()
    for track in library.tracks:
        if track.track_id in ids:
            raise CorruptDatabase(f"duplicate track id {track.track_id}")
        ids.add(track.track_id)

    for playlist, item in library.iter_items():
        if item.podcast_group_flag:
            continue
        if item.track_id not in ids:
            raise CorruptDatabase(
                f"playlist {playlist.name!r} references unknown track id {item.track_id}"
            )

    master = library.master_playlist
    if master is None:
        return
    track_count = len(library.tracks)
    for mhod in master.mhods:
        if mhod.mhod_type != LIBRARY_INDEX_MHOD:
            continue
        count = desc.read("mhod", "index_count", mhod.raw)
        end = LIBRARY_INDEX_OFFSET + 4 * count
        if end > len(mhod.raw):
            raise CorruptDatabase(f"library index of {count} entries overruns its mhod")
        for (position,) in struct.iter_unpack(desc.byte_order + "I", mhod.raw[LIBRARY_INDEX_OFFSET:end]):
            if position >= track_count:
                raise CorruptDatabase(
                    f"library index references track position {position}, only {track_count} tracks"
                )


def parse_itunesdb(file) -> Library:
    if isinstance(file, (str, os.PathLike)):  # If it's a file path, open the file
        with open(file, "rb") as f:
            data = f.read()
    elif hasattr(file, "read"):  # If it's a file-like object, read it directly
        data = file.read()
    else:
        raise TypeError("file must be a path or a file-like object")

    return decode(data)
