"""
In-memory model of an iTunesDB.

Every record keeps the raw header bytes it was decoded from (with the
length and count fields zeroed, since those are recomputed on encode) and
its ordered list of data objects. The named attributes are a view over
the fields sssink understands; everything else rides along in the raw
bytes so an untouched library encodes back to the exact input.
"""

import os
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .layout import FormatDescriptor, MODERN


@dataclass
class DataObject:
    """One mhod. `value` is set for string types that decoded cleanly."""

    mhod_type: int
    raw: bytes
    value: Optional[str] = None


@dataclass
class Track:
    track_id: int = 0
    dbid: int = 0
    title: str = ""
    artist: str = ""
    album: str = ""
    genre: str = ""
    comment: str = ""
    composer: str = ""
    filetype_desc: str = ""
    location: str = ""
    size: int = 0
    length: int = 0  # ms
    bitrate: int = 0  # kbps
    sample_rate: int = 0  # Hz
    filetype: int = 0  # four character code, e.g. 'MP3 ' as an int
    vbr: int = 0
    year: int = 0
    track_number: int = 0
    disc_number: int = 0
    date_added: int = 0  # unix seconds
    media_type: int = 0
    album_id: int = 0
    header: bytes = b""
    mhods: list[DataObject] = field(default_factory=list)
    tail: bytes = b""

    @property
    def filename(self) -> str:
        """Last component of the on-device location."""
        return self.location.rsplit(":", 1)[-1]

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1]


@dataclass
class PlaylistItem:
    track_id: int = 0
    # non-zero on podcast group headers, which point at no track
    podcast_group_flag: int = 0
    header: bytes = b""
    mhods: list[DataObject] = field(default_factory=list)
    tail: bytes = b""


@dataclass
class Playlist:
    name: str = ""
    kind: int = 0  # 1 marks the master (library) playlist
    playlist_id: int = 0
    header: bytes = b""
    mhods: list[DataObject] = field(default_factory=list)
    items: list[PlaylistItem] = field(default_factory=list)
    tail: bytes = b""

    @property
    def is_master(self) -> bool:
        return self.kind == 1

    @property
    def track_ids(self) -> list[int]:
        return [item.track_id for item in self.items if not item.podcast_group_flag]


@dataclass
class Album:
    album_id: int = 0
    name: str = ""
    artist: str = ""
    header: bytes = b""
    mhods: list[DataObject] = field(default_factory=list)
    tail: bytes = b""


@dataclass
class Dataset:
    """
    One mhsd.

    Known kinds hold a list chunk (mhlt/mhlp/mhla) whose children are
    modelled; any other kind is kept whole in `opaque`.
    """

    kind: int
    header: bytes = b""
    list_tag: str = ""
    list_header: bytes = b""
    tracks: list[Track] = field(default_factory=list)
    playlists: list[Playlist] = field(default_factory=list)
    albums: list[Album] = field(default_factory=list)
    opaque: Optional[bytes] = None
    tail: bytes = b""


@dataclass(frozen=True)
class DeviceCapabilities:
    byte_order: str
    reversed_tags: bool
    hash_scheme: int
    has_album_list: bool
    has_podcast_list: bool


@dataclass
class Library:
    descriptor: FormatDescriptor = MODERN
    header: bytes = b""
    datasets: list[Dataset] = field(default_factory=list)
    inner_tail: bytes = b""
    trailing: bytes = b""
    # high-water mark, never handed out twice in one session
    next_track_id: int = field(default=1, compare=False)

    def _header_field(self, name: str) -> int:
        return self.descriptor.read("mhbd", name, self.header, header_length=len(self.header))

    @property
    def version(self) -> int:
        return self._header_field("version")

    @property
    def db_id(self) -> int:
        return self._header_field("db_id")

    @property
    def id_0x24(self) -> int:
        return self._header_field("id_0x24")

    @property
    def hash_scheme(self) -> int:
        return self._header_field("hash_scheme")

    @property
    def capabilities(self) -> DeviceCapabilities:
        kinds = {ds.kind for ds in self.datasets}
        return DeviceCapabilities(
            byte_order=self.descriptor.byte_order,
            reversed_tags=self.descriptor.reversed_tags,
            hash_scheme=self.hash_scheme,
            has_album_list=4 in kinds,
            has_podcast_list=3 in kinds,
        )

    def dataset(self, kind: int) -> Optional[Dataset]:
        for ds in self.datasets:
            if ds.kind == kind and ds.opaque is None:
                return ds
        return None

    @property
    def tracks(self) -> list[Track]:
        ds = self.dataset(1)
        return ds.tracks if ds is not None else []

    @property
    def playlists(self) -> list[Playlist]:
        return [pl for ds in self.datasets if ds.list_tag == "mhlp" for pl in ds.playlists]

    @property
    def master_playlist(self) -> Optional[Playlist]:
        ds = self.dataset(2)
        if ds is None:
            return None
        for pl in ds.playlists:
            if pl.is_master:
                return pl
        return None

    @property
    def albums(self) -> list[Album]:
        ds = self.dataset(4)
        return ds.albums if ds is not None else []

    @property
    def track_ids(self) -> set[int]:
        return {t.track_id for t in self.tracks}

    def find_track(self, track_id: int) -> Optional[Track]:
        for t in self.tracks:
            if t.track_id == track_id:
                return t
        return None

    def iter_items(self) -> Iterator[tuple[Playlist, PlaylistItem]]:
        for pl in self.playlists:
            for item in pl.items:
                yield pl, item
