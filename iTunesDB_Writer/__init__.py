"""
iTunesDB Writer module for sssink.

Turns a Library (as decoded by iTunesDB_Parser, or built fresh) back into
iTunesDB bytes. Records that were not touched come out byte for byte as
they went in; only length/count fields and modelled values are rewritten.

Checksums (hash58/hash72/hashAB) are not computed. Databases that declare
one are written with the old checksum bytes left in place.

Usage:
    from iTunesDB_Parser import parse_itunesdb
    from iTunesDB_Writer import write_itunesdb

    library = parse_itunesdb(itunesdb_path)
    ...
    write_itunesdb(itunesdb_path, library)
"""

from .mhbd_writer import encode, new_database, new_library, write_itunesdb
from .mhit_writer import FILETYPE_CODES, filetype_code, filetype_description, generate_dbid, new_mhit_header, sync_track
from .mhip_writer import new_playlist_item
from .mhla_writer import new_album
from .mhod52_writer import LIBRARY_INDEX_TYPES, build_library_indices
from .mhyp_writer import new_playlist

__all__ = [
    'encode',
    'new_database',
    'new_library',
    'write_itunesdb',
    # Records
    'FILETYPE_CODES',
    'filetype_code',
    'filetype_description',
    'generate_dbid',
    'new_mhit_header',
    'sync_track',
    'new_playlist_item',
    'new_album',
    'new_playlist',
    'LIBRARY_INDEX_TYPES',
    'build_library_indices',
]
