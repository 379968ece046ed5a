"""
MHBD Writer - Write complete iTunesDB database files.

This is the top-level writer that assembles all components into
a valid iTunesDB file.

Database structure (based on libgpod order):
  mhbd (database header)
    mhsd type 4 (albums dataset)
      mhla (album list)
    mhsd type 1 (tracks dataset)
      mhlt (track list)
        mhit (track) × N
          mhod (string) × M
    mhsd type 3 (podcasts dataset)
      mhlp (podcast playlist list)
    mhsd type 2 (playlists dataset)
      mhlp (playlist list)
        mhyp (master playlist) - REQUIRED
          mhip (track ref) × N
    mhsd type 5 (smart playlists dataset)
      mhlp (smart playlist list)
"""

import copy
import logging
import os
import random
import shutil
import time
from typing import Optional

from iTunesDB_Parser.constants import DATASET_ORDER
from iTunesDB_Parser.layout import MODERN, FormatDescriptor
from iTunesDB_Parser.model import Library

from .chunk_writer import finish_header, new_header
from .mhsd_writer import MHSD_TYPE_PLAYLISTS, MHSD_TYPE_PODCASTS, new_dataset, write_mhsd
from .mhyp_writer import new_playlist

logger = logging.getLogger(__name__)


# MHBD header size (version 0x4F+)
MHBD_HEADER_SIZE = 244

# Database version - using 0x4F (79) which is widely compatible
DATABASE_VERSION = 0x4F
# last pre-iTunes 7 version, for databases without album lists in the tracks
LEGACY_DATABASE_VERSION = 0x12


def encode(library: Library) -> bytes:
    """
    Serialize a Library back into iTunesDB bytes.

    Every record is brought in line with its attributes first (raw headers
    patched, string MHODs re-encoded where they changed), so the Library
    passed in is also the one the output decodes to.
    """
    desc = library.descriptor
    datasets = b"".join(write_mhsd(ds, desc) for ds in library.datasets)
    total_length = len(library.header) + len(datasets) + len(library.inner_tail)

    header = finish_header(desc, "mhbd", library.header,
                           total_length=total_length, child_count=len(library.datasets))
    return header + datasets + library.inner_tail + library.trailing


def new_library(descriptor: Optional[FormatDescriptor] = None, name: str = "iPod") -> Library:
    """
    An empty library: album, track, podcast, playlist and smart playlist
    datasets, with a master playlist called `name`.

    Layout based on libgpod mk_mhbd() and MhbdHeader struct.
    """
    desc = descriptor or MODERN
    header = new_header(desc, "mhbd", MHBD_HEADER_SIZE)

    db_id = random.getrandbits(64)
    id_0x24 = random.getrandbits(64)

    # Get local timezone offset in seconds
    tz_offset = -time.altzone if time.daylight else -time.timezone

    fields = {
        "unk_0x0c": 1,
        "version": DATABASE_VERSION if "album_id" in desc.tables["mhit"] else LEGACY_DATABASE_VERSION,
        "db_id": db_id,
        "platform": 2,        # 1 = Mac, 2 = Windows
        "unk_0x22": 611,      # observed in working databases
        "id_0x24": id_0x24,
        "hash_scheme": 0,     # no checksum
        "lib_persistent_id": random.getrandbits(64),
        "unk_0x50": 1,
        "unk_0x54": 15,
        "timezone": tz_offset,
        "unk_0x70": 3,
    }
    for field_name, value in fields.items():
        desc.write("mhbd", field_name, header, value)
    # +0x46: Language ID (2 bytes)
    header[0x46:0x48] = b"en"

    datasets = {kind: new_dataset(kind, desc) for kind in DATASET_ORDER}

    master = new_playlist(name, desc, master=True, id_0x24=id_0x24)
    datasets[MHSD_TYPE_PLAYLISTS].playlists.append(master)
    # libgpod writes the podcast dataset with the same playlists as type 2;
    # an empty podcast section makes some iPods reject the database.
    datasets[MHSD_TYPE_PODCASTS].playlists.append(copy.deepcopy(master))

    return Library(descriptor=desc, header=bytes(header), datasets=[datasets[k] for k in DATASET_ORDER])


def new_database(descriptor: Optional[FormatDescriptor] = None, name: str = "iPod") -> bytes:
    """Bytes of a freshly initialized, empty iTunesDB."""
    return encode(new_library(descriptor, name))


def write_itunesdb(path, library: Library, backup: bool = True) -> None:
    """
    Write a Library to disk atomically.

    The current file is optionally copied to `<path>.backup`, the new image
    goes to `<path>.tmp`, and that is renamed over the original, so readers
    only ever see the old bytes or the new ones.

    Raises:
        OSError: the backup, temp write or rename failed; the temp file is
            removed and the original is untouched
        struct.error: a field holds a value too large for its slot; nothing
            is written
    """
    path = os.fspath(path)
    data = encode(library)

    if backup and os.path.exists(path):
        backup_path = path + ".backup"
        shutil.copy2(path, backup_path)
        logger.debug("Backed up %s to %s", path, backup_path)

    tmp_path = path + ".tmp"
    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    logger.info("Wrote iTunesDB: %d bytes, %d tracks", len(data), len(library.tracks))
