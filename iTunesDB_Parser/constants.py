# maps the kind used in mhsd to the list chunk it contains
# anything not listed here is carried through as opaque bytes
chunk_type_map = {
    1: "mhlt",  # track list
    2: "mhlp",  # playlist list
    3: "mhlp",  # podcast list, same identifier as playlist
    4: "mhla",  # album list (iTunes 7.1>)
    5: "mhlp",  # smart playlist list (iTunes 7.3>)
}

# dataset kinds in the order iTunes writes them
DATASET_ORDER = (4, 1, 3, 2, 5)

# maps the database version to an iTunes version
version_map = {
    0x09: "iTunes 4.2",
    0x0a: "iTunes 4.5",
    0x0b: "iTunes 4.7",
    0x0c: "iTunes 4.71/4.8",
    0x0d: "iTunes 4.9",
    0x0e: "iTunes 5",
    0x0f: "iTunes 6",
    0x10: "iTunes 6.0.1",
    0x11: "iTunes 6.0.2 to 6.0.4",
    0x12: "iTunes 6.0.5",
    0x13: "iTunes 7.0",
    0x14: "iTunes 7.1",
    0x15: "iTunes 7.2",
    0x17: "iTunes 7.3.0",
    0x18: "iTunes 7.3.1 to 7.3.2",
    0x19: "iTunes 7.4",
    0x4F: "iTunes 9.2+",
}

identifier_readable_map = {
    "mhbd": "Database",
    "mhsd": "Dataset",
    "mhlt": "Track List",
    "mhlp": "Playlist List",
    "mhla": "Album List",
    "mhia": "Album Item",
    "mhit": "Track Item",
    "mhyp": "Playlist",
    "mhod": "Data Object",
    "mhip": "Playlist Item",
}

# maps the mhod type to its readable name
mhod_type_map = {
    1: "Title",
    2: "Location",
    3: "Album",
    4: "Artist",
    5: "Genre",
    6: "Filetype",
    7: "EQ Setting",
    8: "Comment",
    9: "Category",
    12: "Composer",
    13: "Grouping",
    14: "Description Text",
    22: "Album Artist",
    23: "Sort Artist",
    27: "Sort Title",
    28: "Sort Album",
    50: "Smart Playlist Data",
    51: "Smart Playlist Rules",
    52: "Library Playlist Index",
    53: "Library Playlist Jump Table",
    100: "Column Size or Playlist Order",
    200: "Album (Used by Album Item)",
    201: "Artist (Used by Album Item)",
    202: "Sort Artist (Used by Album Item)",
}

# mhod types whose body is a length-prefixed string
STRING_MHOD_TYPES = frozenset(
    list(range(1, 15)) + list(range(18, 32)) + [200, 201, 202, 203, 204]
) - {10, 11}

# Track attribute fed by each string mhod
TRACK_STRING_FIELDS = {
    1: "title",
    2: "location",
    3: "album",
    4: "artist",
    5: "genre",
    6: "filetype_desc",
    8: "comment",
    12: "composer",
}

ALBUM_STRING_FIELDS = {
    200: "name",
    201: "artist",
}

PLAYLIST_NAME_MHOD = 1
POSITION_MHOD = 100
LIBRARY_INDEX_MHOD = 52
JUMP_TABLE_MHOD = 53

# Seconds between 1904-01-01 (Mac epoch) and 1970-01-01
MAC_EPOCH_OFFSET = 2082844800

# UTF-8 strings carry encoding flag 2, everything else is UTF-16
ENCODING_UTF16 = 1
ENCODING_UTF8 = 2
