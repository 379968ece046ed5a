"""
MHOD Type 52/53 Writer - Library Playlist Index for iTunesDB.

These MHODs are written ONLY for the Master Playlist and provide
pre-sorted track indices that the iPod uses to build its browsing
views (Songs, Artists, Albums, Genres, Composers).

Without these indices, the iPod Classic shows "no songs, no albums"
even if tracks exist in the database.

Based on libgpod's mk_mhod52(), mk_mhod53(), and write_playlist()
in itdb_itunesdb.c.

Type 52 (MHOD_ID_LIBPLAYLISTINDEX):
  Pre-sorted track position arrays for each sort category.
  Format: header(24) + sort_type(4) + count(4) + padding(40) + indices(count*4)
  Total = 4*count + 72

Type 53 (MHOD_ID_LIBPLAYLISTJUMPTABLE):
  Letter-jump table for quick scrolling in each category.
  Format: header(24) + sort_type(4) + count(4) + padding(8) + entries(count*12)
  Total = 12*count + 40
"""

import struct
import unicodedata

from iTunesDB_Parser.constants import JUMP_TABLE_MHOD, LIBRARY_INDEX_MHOD
from iTunesDB_Parser.layout import FormatDescriptor
from iTunesDB_Parser.model import DataObject, Track

from .chunk_writer import new_header


# Sort type constants (from libgpod enum MHOD52_SORTTYPE)
SORT_TITLE = 0x03
SORT_ALBUM = 0x04
SORT_ARTIST = 0x05
SORT_GENRE = 0x07
SORT_COMPOSER = 0x12

ALL_SORT_TYPES = [SORT_TITLE, SORT_ALBUM, SORT_ARTIST, SORT_GENRE, SORT_COMPOSER]

LIBRARY_INDEX_TYPES = (LIBRARY_INDEX_MHOD, JUMP_TABLE_MHOD)


def _sort_key(s: str) -> str:
    """
    Create a case-insensitive sort key for a string.

    Strips leading "The " for sorting (matching iTunes behavior),
    normalizes unicode, and lowercases.
    """
    if not s:
        return ""
    if s.lower().startswith("the "):
        s = s[4:]
    return unicodedata.normalize('NFKD', s).casefold()


def _jump_table_letter(s: str) -> int:
    """
    Get the first alphanumeric character for jump table grouping.

    Returns uppercase letter (A-Z) as Unicode codepoint, or ord('0')
    for strings starting with digits.

    Based on libgpod's jump_table_letter().
    """
    for ch in s or "":
        if ch.isalnum():
            if ch.isdigit():
                return ord('0')
            letter = ord(ch.upper()[0])  # 'ß'.upper() is 'SS'
            # stored as u16
            return letter if letter <= 0xFFFF else ord('0')
    return ord('0')


def _sort_fields(track: Track, sort_type: int) -> tuple:
    """Multi-field sort keys, matching libgpod's mhod52_sort_* functions."""
    title = _sort_key(track.title)
    album = _sort_key(track.album)
    artist = _sort_key(track.artist)
    genre = _sort_key(track.genre)
    composer = _sort_key(track.composer)
    cd_nr = track.disc_number
    track_nr = track.track_number

    if sort_type == SORT_ALBUM:
        return (album, cd_nr, track_nr, title)
    elif sort_type == SORT_ARTIST:
        return (artist, album, cd_nr, track_nr, title)
    elif sort_type == SORT_GENRE:
        return (genre, artist, album, cd_nr, track_nr, title)
    elif sort_type == SORT_COMPOSER:
        return (composer, album, cd_nr, track_nr, title)
    return (title,)


def _jump_source(track: Track, sort_type: int) -> str:
    return {
        SORT_ALBUM: track.album,
        SORT_ARTIST: track.artist,
        SORT_GENRE: track.genre,
        SORT_COMPOSER: track.composer,
    }.get(sort_type, track.title)


def write_mhod_type52(tracks: list[Track], sort_type: int,
                      desc: FormatDescriptor) -> tuple[bytes, list[tuple[int, int, int]]]:
    """
    Write a Type 52 MHOD (library playlist index) for one sort category.

    Args:
        tracks: all tracks, in stored order (indices are positions in this list)
        sort_type: Sort category (SORT_TITLE, SORT_ALBUM, etc.)

    Returns:
        Tuple of (MHOD bytes, jump_table_entries) where jump_table_entries
        is a list of (letter, start, count) tuples for the corresponding
        Type 53 MHOD.
    """
    order = sorted(range(len(tracks)), key=lambda i: (_sort_fields(tracks[i], sort_type), i))

    # Group consecutive entries by first letter
    jump_entries: list[tuple[int, int, int]] = []
    for pos, index in enumerate(order):
        letter = _jump_table_letter(_jump_source(tracks[index], sort_type))
        if jump_entries and jump_entries[-1][0] == letter:
            letter_val, start, count = jump_entries[-1]
            jump_entries[-1] = (letter_val, start, count + 1)
        else:
            jump_entries.append((letter, pos, 1))

    data = new_header(desc, "mhod", 24)
    data.extend(bytes(48))  # sort_type + count + 40 bytes padding
    desc.write("mhod", "total_length", data, 4 * len(tracks) + 72)
    desc.write("mhod", "mhod_type", data, LIBRARY_INDEX_MHOD)
    desc.write("mhod", "sort_type", data, sort_type)
    desc.write("mhod", "index_count", data, len(tracks))

    indices = struct.pack(f"{desc.byte_order}{len(order)}I", *order)
    return bytes(data) + indices, jump_entries


def write_mhod_type53(sort_type: int, jump_entries: list[tuple[int, int, int]],
                      desc: FormatDescriptor) -> bytes:
    """
    Write a Type 53 MHOD (library playlist jump table) for one sort category.

    Each entry is letter(u16) + pad(u16) + start(u32) + count(u32).
    """
    data = new_header(desc, "mhod", 24)
    data.extend(bytes(16))  # sort_type + count + 8 bytes padding
    desc.write("mhod", "total_length", data, 12 * len(jump_entries) + 40)
    desc.write("mhod", "mhod_type", data, JUMP_TABLE_MHOD)
    desc.write("mhod", "sort_type", data, sort_type)
    desc.write("mhod", "index_count", data, len(jump_entries))

    for letter, start, count in jump_entries:
        data.extend(struct.pack(desc.byte_order + "HHII", letter, 0, start, count))
    return bytes(data)


def build_library_indices(tracks: list[Track], desc: FormatDescriptor) -> list[DataObject]:
    """
    All library index MHODs (type 52 + type 53 pairs) for the master playlist.

    Five sort categories × 2 MHODs = 10 MHODs; none for an empty library.
    """
    if not tracks:
        return []

    result = []
    for sort_type in ALL_SORT_TYPES:
        mhod52_data, jump_entries = write_mhod_type52(tracks, sort_type, desc)
        result.append(DataObject(LIBRARY_INDEX_MHOD, mhod52_data))
        result.append(DataObject(JUMP_TABLE_MHOD, write_mhod_type53(sort_type, jump_entries, desc)))
    return result
