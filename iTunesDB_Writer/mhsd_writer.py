"""
MHSD Writer - Write dataset chunks for iTunesDB.

MHSD (dataset) chunks are containers for different types of data:
- Type 1: Track list (mhlt)
- Type 2: Playlist list (mhlp)
- Type 3: Podcast list (mhlp)
- Type 4: Album list (mhla)
- Type 5: Smart playlist list (mhlp)

Any other type was kept whole on decode and goes back out unchanged.
"""

from iTunesDB_Parser.constants import chunk_type_map
from iTunesDB_Parser.layout import FormatDescriptor
from iTunesDB_Parser.model import Dataset

from .chunk_writer import finish_header, new_header
from .mhla_writer import write_mhla
from .mhlp_writer import write_mhlp
from .mhlt_writer import new_list_header, write_mhlt


# MHSD header size
MHSD_HEADER_SIZE = 96

# Dataset types
MHSD_TYPE_TRACKS = 1
MHSD_TYPE_PLAYLISTS = 2
MHSD_TYPE_PODCASTS = 3
MHSD_TYPE_ALBUMS = 4
MHSD_TYPE_SMART_PLAYLISTS = 5


def new_dataset(kind: int, desc: FormatDescriptor) -> Dataset:
    header = new_header(desc, "mhsd", MHSD_HEADER_SIZE)
    desc.write("mhsd", "kind", header, kind)
    list_tag = chunk_type_map[kind]
    return Dataset(kind=kind, header=bytes(header), list_tag=list_tag,
                   list_header=new_list_header(desc, list_tag))


def write_mhsd(dataset: Dataset, desc: FormatDescriptor) -> bytes:
    if dataset.opaque is not None:
        return dataset.opaque

    match dataset.list_tag:
        case "mhlt":
            body = write_mhlt(dataset.tracks, dataset.list_header, desc)
        case "mhla":
            body = write_mhla(dataset.albums, dataset.list_header, desc)
        case _:
            body = write_mhlp(dataset.playlists, dataset.list_header, desc)

    total_length = len(dataset.header) + len(body) + len(dataset.tail)
    return finish_header(desc, "mhsd", dataset.header, total_length=total_length) + body + dataset.tail
