"""
Library mutation engine.

A LibraryEditor borrows a decoded Library and a Mount for one command.
add() and remove() change the in-memory library straight away and stage
the matching file operations; commit() then performs them in an order
that leaves the device either fully updated or with its original
iTunesDB untouched:

  1. copy new files   (undone on failure)
  2. delete old files (copies undone on failure)
  3. integrity pass   (drop tracks whose file is missing)
  4. write iTunesDB   (copies undone on failure)

There is no lock on the device: two sssink processes writing the same
iPod at once will lose one of the updates.
"""

import logging
import os
import struct
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from iTunesDB_Parser.model import Library, Track
from iTunesDB_Parser.parser import parse_itunesdb
from iTunesDB_Writer import (
    LIBRARY_INDEX_TYPES,
    build_library_indices,
    filetype_code,
    filetype_description,
    generate_dbid,
    new_album,
    new_mhit_header,
    new_playlist_item,
    sync_track,
    write_itunesdb,
)
from iTunesDB_Writer.mhit_writer import MEDIA_TYPE_AUDIO

from . import tag_reader
from .device import (
    Mount,
    allocate_device_path,
    copy_to_device,
    delete_from_device,
    from_location,
    to_location,
)
from .errors import (
    CopyFailed,
    CorruptDatabase,
    DeleteFailed,
    DuplicateTrack,
    NotFound,
    NotMounted,
    UnreadableSource,
    WriteFailed,
)
from .integrity import IntegrityReport, drop_missing_tracks
from .tag_reader import TagInfo

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"

# iTunesDB stores the sample rate as Hz << 16 in 32 bits
MAX_SAMPLE_RATE = 0xFFFF
# every other numeric mhit field is a u32
MAX_U32 = 0xFFFFFFFF


def _fit(value, limit: int = MAX_U32) -> int:
    """Clamp a tag-derived number into its unsigned field."""
    return max(0, min(int(value), limit))


def load_library(mount: Mount) -> Library:
    """
    Decode the device's iTunesDB.

    Raises:
        NotMounted: there is no iTunesDB (no first-time sync yet)
        CorruptDatabase: the file is unreadable or does not decode
    """
    path = mount.database_path
    try:
        return parse_itunesdb(path)
    except FileNotFoundError as e:
        raise NotMounted("invalid device mount") from e
    except OSError as e:
        raise CorruptDatabase(f"cannot read {path}: {e}") from e


class TrackView:
    """Read-only view of a library's tracks in stored order; iterate it as often as you like."""

    def __init__(self, library: Library):
        self._library = library

    def __iter__(self) -> Iterator[Track]:
        yield from self._library.tracks

    def __len__(self) -> int:
        return len(self._library.tracks)


def list_tracks(library: Library) -> TrackView:
    return TrackView(library)


def find_tracks(library: Library, selector: str) -> list[Track]:
    """
    Resolve a command line track selector.

    "*" matches everything; a number matches that track id; anything else
    is compared case-insensitively against the title, "title - artist"
    and the file name on the device.

    Raises:
        NotFound: nothing matched (never raised for "*")
    """
    if selector == "*":
        return list(library.tracks)

    if selector.isdigit():
        track = library.find_track(int(selector))
        if track is not None:
            return [track]

    needle = selector.casefold()
    matches = [
        t for t in library.tracks
        if needle in (t.title.casefold(), f"{t.title} - {t.artist}".casefold(), t.filename.casefold())
    ]
    if not matches:
        raise NotFound(f"no track matching '{selector}'")
    return matches


def master_playlists(library: Library) -> list:
    return [pl for pl in library.playlists if pl.is_master]


def rebuild_library_indices(library: Library) -> None:
    """Regenerate the type 52/53 sort indices of every master playlist."""
    desc = library.descriptor
    indices = build_library_indices(library.tracks, desc)
    for master in master_playlists(library):
        kept = [m for m in master.mhods if m.mhod_type not in LIBRARY_INDEX_TYPES]
        master.mhods = kept + list(indices)


def detach_tracks(library: Library, track_ids: set[int]) -> list[Track]:
    """
    Remove tracks and everything that points at them.

    Playlist items referencing the tracks are dropped, albums that only
    they used are pruned, and the sort indices are rebuilt. Relative order
    of what remains is kept. Returns the removed tracks.
    """
    ds = library.dataset(1)
    if ds is None or not track_ids:
        return []

    removed = [t for t in ds.tracks if t.track_id in track_ids]
    if not removed:
        return []
    ds.tracks = [t for t in ds.tracks if t.track_id not in track_ids]

    for playlist in library.playlists:
        playlist.items = [
            item for item in playlist.items
            if item.podcast_group_flag or item.track_id not in track_ids
        ]

    albums = library.dataset(4)
    if albums is not None:
        orphaned = {t.album_id for t in removed if t.album_id} - {t.album_id for t in ds.tracks}
        albums.albums = [a for a in albums.albums if a.album_id not in orphaned]

    rebuild_library_indices(library)
    return removed


@dataclass
class StagedCopy:
    source: Path
    device_path: Path  # relative to the mount root
    track: Track


class LibraryEditor:
    def __init__(
        self,
        library: Library,
        mount: Mount,
        reject_duplicates: bool = False,
        music_folder_count: int = 20,
        backup: bool = True,
    ):
        self.library = library
        self.mount = mount
        self.reject_duplicates = reject_duplicates
        self.music_folder_count = music_folder_count
        self.backup = backup

        self._copies: list[StagedCopy] = []
        self._deletes: list[Path] = []

    # ── Queries ─────────────────────────────────────────────────────────────

    def tracks(self) -> TrackView:
        return list_tracks(self.library)

    @property
    def staged_copies(self) -> list[StagedCopy]:
        return list(self._copies)

    @property
    def staged_deletes(self) -> list[Path]:
        return list(self._deletes)

    # ── Mutations ───────────────────────────────────────────────────────────

    def add(self, source_file: str | os.PathLike, track_metadata: Optional[TagInfo] = None) -> Track:
        """
        Add a file to the library and stage its copy to the device.

        Raises:
            UnreadableSource: the source cannot be opened
            NoTag: no metadata given and the file has no readable tags
            DuplicateTrack: reject_duplicates is on and the track is already there
        """
        source = Path(source_file)
        info = track_metadata if track_metadata is not None else tag_reader.extract(source)

        try:
            size = source.stat().st_size
        except OSError as e:
            raise UnreadableSource(f"cannot open {source}: {e.strerror or e}") from e

        title = info.title or source.name
        artist = info.artist or UNKNOWN_ARTIST
        album = info.album or UNKNOWN_ALBUM

        if self.reject_duplicates:
            for existing in self.library.tracks:
                if (existing.title, existing.artist, existing.album) == (title, artist, album):
                    raise DuplicateTrack(f"'{title}' by {artist} is already on the device")

        desc = self.library.descriptor
        track_id = self.library.next_track_id
        self.library.next_track_id += 1
        dbid = self._unique_dbid()

        device_path = allocate_device_path(
            self.mount, source.name,
            taken=[c.device_path for c in self._copies],
            folder_count=self.music_folder_count,
        )
        ext = source.suffix

        track = Track(
            track_id=track_id,
            dbid=dbid,
            title=title,
            artist=artist,
            album=album,
            genre=info.genre or "",
            comment=info.comment or "",
            composer=info.composer or "",
            filetype_desc=filetype_description(ext),
            location=to_location(device_path),
            size=_fit(size),
            length=_fit(info.duration_ms),
            bitrate=_fit(info.bitrate),
            sample_rate=_fit(info.sample_rate, MAX_SAMPLE_RATE),
            filetype=filetype_code(ext),
            vbr=1 if info.vbr else 0,
            year=_fit(info.year),
            track_number=_fit(info.track_number),
            disc_number=_fit(info.disc_number),
            date_added=int(time.time()),
            media_type=MEDIA_TYPE_AUDIO,
            header=new_mhit_header(desc, dbid, self.library.id_0x24),
        )
        self._link_album(track)
        sync_track(track, desc)

        self.library.dataset(1).tracks.append(track)
        for master in master_playlists(self.library):
            master.items.append(new_playlist_item(track_id, len(master.items), desc))
        rebuild_library_indices(self.library)

        self._copies.append(StagedCopy(source=source, device_path=device_path, track=track))
        logger.info(f"Staged add: '{title}' by {artist} -> {track.location}")
        return track

    def remove(self, selector: int | str) -> int:
        """
        Remove one track by id, or every track with "*".

        Raises:
            NotFound: no track has that id
        """
        if selector == "*":
            ids = self.library.track_ids
        else:
            try:
                track_id = int(selector)
            except (TypeError, ValueError):
                raise NotFound(f"no track with id {selector!r}") from None
            if self.library.find_track(track_id) is None:
                raise NotFound(f"no track with id {track_id}")
            ids = {track_id}

        removed = detach_tracks(self.library, ids)
        for track in removed:
            staged = next((c for c in self._copies if c.track is track), None)
            if staged is not None:
                # added and removed in one session: nothing on the device yet
                self._copies.remove(staged)
            elif track.location:
                self._deletes.append(from_location(track.location))
            logger.info(f"Staged remove: '{track.title}' (id {track.track_id})")

        return len(removed)

    # ── Commit ──────────────────────────────────────────────────────────────

    def commit(self) -> IntegrityReport:
        """
        Perform the staged file operations, then write the database.

        Raises:
            CopyFailed: a copy failed; copies made so far are removed, the
                database is untouched
            DeleteFailed: a deletion failed; copies are removed, the
                database is untouched
            WriteFailed: the database could not be written; copies are removed
        """
        done: list[Path] = []

        try:
            for staged in self._copies:
                copy_to_device(self.mount, staged.source, staged.device_path)
                done.append(staged.device_path)
        except CopyFailed:
            self._rollback(done)
            raise

        try:
            for device_path in self._deletes:
                delete_from_device(self.mount, device_path)
        except DeleteFailed:
            self._rollback(done)
            raise

        report = drop_missing_tracks(self.mount, self.library)

        if self.library.hash_scheme:
            logger.warning(
                f"Database declares checksum scheme {self.library.hash_scheme}; "
                "it is not recomputed and newer iPods may reject the database"
            )

        try:
            write_itunesdb(self.mount.database_path, self.library, backup=self.backup)
        except (OSError, struct.error) as e:
            self._rollback(done)
            raise WriteFailed(f"could not write {self.mount.database_path}: {e}") from e

        logger.info(f"Committed: {len(self._copies)} copied, {len(self._deletes)} deleted")
        self._copies.clear()
        self._deletes.clear()
        return report

    # ── Internals ───────────────────────────────────────────────────────────

    def _unique_dbid(self) -> int:
        used = {t.dbid for t in self.library.tracks}
        while True:
            dbid = generate_dbid()
            if dbid and dbid not in used:
                return dbid

    def _link_album(self, track: Track) -> None:
        """Point the track at a matching album entry, creating one if needed."""
        albums = self.library.dataset(4)
        desc = self.library.descriptor
        if albums is None or not desc.has("mhit", "album_id", len(track.header)):
            return

        for album in albums.albums:
            if album.name == track.album and album.artist == track.artist:
                track.album_id = album.album_id
                return

        album_id = max((a.album_id for a in albums.albums), default=0) + 1
        albums.albums.append(new_album(album_id, track.album, track.artist, desc))
        track.album_id = album_id

    def _rollback(self, done: list[Path]) -> None:
        for device_path in done:
            try:
                delete_from_device(self.mount, device_path)
            except DeleteFailed as e:
                logger.error(f"Rollback could not remove {device_path}: {e}")
