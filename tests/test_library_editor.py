"""
Tests for SyncEngine.library_editor and SyncEngine.integrity.

These tests verify:
- adding tracks fills defaults, allocates ids and stages copies
- removing tracks detaches them from playlists and albums
- commit order and rollback when a copy, delete or write fails
- the integrity pass drops tracks whose file vanished
"""

from __future__ import annotations

import shutil
import struct
from pathlib import Path

import pytest

from iTunesDB_Parser import decode
from SyncEngine.device import from_location
from SyncEngine.errors import (
    CopyFailed,
    CorruptDatabase,
    DeleteFailed,
    DuplicateTrack,
    NotFound,
    NotMounted,
    UnreadableSource,
    WriteFailed,
)
from SyncEngine.integrity import drop_missing_tracks
from SyncEngine.library_editor import LibraryEditor, find_tracks, list_tracks, load_library
from SyncEngine.tag_reader import TagInfo


@pytest.fixture
def editor(mount) -> LibraryEditor:
    return LibraryEditor(load_library(mount), mount)


def reload(mount):
    return decode(mount.database_path.read_bytes())


# =============================================================================
# Loading
# =============================================================================


class TestLoadLibrary:
    def test_fresh_device(self, mount) -> None:
        library = load_library(mount)
        assert len(list_tracks(library)) == 0

    def test_missing_database(self, mount) -> None:
        mount.database_path.unlink()
        with pytest.raises(NotMounted):
            load_library(mount)

    def test_corrupt_database(self, mount) -> None:
        mount.database_path.write_bytes(b"this is not an iTunesDB" * 10)
        with pytest.raises(CorruptDatabase):
            load_library(mount)


# =============================================================================
# Adding
# =============================================================================


class TestAdd:
    def test_add_and_commit(self, editor: LibraryEditor, mount, make_source, tags: TagInfo) -> None:
        source = make_source("windowlicker.mp3", b"mp3 data")

        track = editor.add(source, tags)
        editor.commit()

        library = reload(mount)
        stored = library.find_track(track.track_id)
        assert stored.title == "Windowlicker"
        assert stored.artist == "Aphex Twin"
        assert stored.size == len(b"mp3 data")
        assert stored.sample_rate == 44100
        assert stored.filetype_desc == "MPEG audio file"
        assert (mount.root / from_location(stored.location)).read_bytes() == b"mp3 data"
        assert library.master_playlist.track_ids == [track.track_id]

    def test_defaults_for_missing_tags(self, editor: LibraryEditor, make_source) -> None:
        source = make_source("untitled.mp3")

        track = editor.add(source, TagInfo())

        assert track.title == "untitled.mp3"
        assert track.artist == "Unknown Artist"
        assert track.album == "Unknown Album"

    def test_oversized_tag_numbers_are_clamped(self, editor: LibraryEditor, mount, make_source) -> None:
        source = make_source("huge.mp3")
        info = TagInfo(title="Huge", track_number=5_000_000_000, disc_number=2**40,
                       year=-3, duration_ms=2**33, sample_rate=10_000_000)

        track = editor.add(source, info)
        editor.commit()

        stored = reload(mount).find_track(track.track_id)
        assert stored.track_number == 0xFFFFFFFF
        assert stored.disc_number == 0xFFFFFFFF
        assert stored.length == 0xFFFFFFFF
        assert stored.year == 0
        assert stored.sample_rate == 0xFFFF

    def test_add_creates_nothing_on_device(self, editor: LibraryEditor, mount, make_source, tags: TagInfo) -> None:
        editor.add(make_source("a.mp3"), tags)

        assert not mount.music_dir.exists()

        editor.commit()
        assert len(list(mount.music_dir.iterdir())) == 1

    def test_ids_are_unique(self, editor: LibraryEditor, make_source, tags: TagInfo) -> None:
        first = editor.add(make_source("a.mp3"), tags)
        second = editor.add(make_source("b.mp3"), tags)

        assert first.track_id != second.track_id
        assert first.dbid != second.dbid
        assert first.dbid and second.dbid

    def test_ids_not_reused_after_remove(self, editor: LibraryEditor, make_source, tags: TagInfo) -> None:
        first = editor.add(make_source("a.mp3"), tags)
        editor.remove(first.track_id)
        second = editor.add(make_source("b.mp3"), tags)

        assert second.track_id > first.track_id

    def test_same_name_gets_distinct_paths(self, mount, make_source, tags: TagInfo, source_dir: Path) -> None:
        editor = LibraryEditor(load_library(mount), mount, music_folder_count=1)
        first = editor.add(make_source("song.mp3"), tags)
        other_dir = source_dir / "other"
        other_dir.mkdir()
        (other_dir / "song.mp3").write_bytes(b"other")
        second = editor.add(other_dir / "song.mp3", tags)

        assert first.location != second.location
        editor.commit()
        assert (mount.root / from_location(second.location)).read_bytes() == b"other"

    def test_album_linked(self, editor: LibraryEditor, make_source, tags: TagInfo) -> None:
        first = editor.add(make_source("a.mp3"), tags)
        second = editor.add(make_source("b.mp3"), tags)

        assert first.album_id != 0
        assert first.album_id == second.album_id
        assert [(a.name, a.artist) for a in editor.library.albums] == [("Windowlicker EP", "Aphex Twin")]

    def test_oversized_sample_rate_clamped(self, editor: LibraryEditor, make_source) -> None:
        track = editor.add(make_source("hi.flac"), TagInfo(title="Hi-res", sample_rate=192000))
        assert track.sample_rate == 0xFFFF

    def test_duplicate_rejected(self, mount, make_source, tags: TagInfo) -> None:
        editor = LibraryEditor(load_library(mount), mount, reject_duplicates=True)
        editor.add(make_source("a.mp3"), tags)

        with pytest.raises(DuplicateTrack):
            editor.add(make_source("b.mp3"), tags)

    def test_duplicate_allowed_by_default(self, editor: LibraryEditor, make_source, tags: TagInfo) -> None:
        editor.add(make_source("a.mp3"), tags)
        editor.add(make_source("b.mp3"), tags)

        assert len(editor.tracks()) == 2

    def test_missing_source(self, editor: LibraryEditor, tmp_path: Path, tags: TagInfo) -> None:
        with pytest.raises(UnreadableSource):
            editor.add(tmp_path / "missing.mp3", tags)
        assert len(editor.tracks()) == 0

    def test_tags_read_when_not_given(self, editor: LibraryEditor, make_source, monkeypatch) -> None:
        from SyncEngine import tag_reader

        monkeypatch.setattr(tag_reader, "extract", lambda path: TagInfo(title="From Tags"))
        track = editor.add(make_source("t.mp3"))

        assert track.title == "From Tags"


# =============================================================================
# Removing
# =============================================================================


class TestRemove:
    @pytest.fixture
    def populated(self, mount, make_source, tags: TagInfo):
        editor = LibraryEditor(load_library(mount), mount)
        editor.add(make_source("a.mp3"), tags)
        editor.add(make_source("b.mp3"), TagInfo(title="Girl/Boy", artist="Aphex Twin", album="Girl/Boy EP"))
        editor.add(make_source("c.mp3"), TagInfo(title="Come to Daddy", artist="Aphex Twin"))
        editor.commit()
        return mount

    def test_remove_one(self, populated) -> None:
        editor = LibraryEditor(load_library(populated), populated)
        track = find_tracks(editor.library, "Girl/Boy")[0]
        path = populated.root / from_location(track.location)

        assert editor.remove(track.track_id) == 1
        editor.commit()

        library = reload(populated)
        assert library.find_track(track.track_id) is None
        assert track.track_id not in library.master_playlist.track_ids
        assert "Girl/Boy EP" not in [a.name for a in library.albums]
        assert not path.exists()

    def test_remove_keeps_shared_album(self, populated, make_source, tags: TagInfo) -> None:
        editor = LibraryEditor(load_library(populated), populated)
        extra = editor.add(make_source("d.mp3"), tags)
        editor.commit()

        editor = LibraryEditor(load_library(populated), populated)
        editor.remove(extra.track_id)
        editor.commit()

        assert "Windowlicker EP" in [a.name for a in reload(populated).albums]

    def test_remove_all(self, populated) -> None:
        editor = LibraryEditor(load_library(populated), populated)

        assert editor.remove("*") == 3
        assert len(editor.staged_deletes) == 3
        editor.commit()

        library = reload(populated)
        assert library.tracks == []
        assert all(not pl.items for pl in library.playlists)

    def test_remove_unknown(self, populated) -> None:
        editor = LibraryEditor(load_library(populated), populated)
        with pytest.raises(NotFound):
            editor.remove(999)
        with pytest.raises(NotFound):
            editor.remove("not a number")

    def test_add_then_remove_copies_nothing(self, editor: LibraryEditor, make_source, tags: TagInfo) -> None:
        track = editor.add(make_source("a.mp3"), tags)
        editor.remove(track.track_id)

        assert editor.staged_copies == []
        assert editor.staged_deletes == []


class TestFindTracks:
    @pytest.fixture
    def library(self, editor: LibraryEditor, make_source, tags: TagInfo):
        editor.add(make_source("a.mp3"), tags)
        editor.add(make_source("b.mp3"), TagInfo(title="Flim", artist="Aphex Twin"))
        return editor.library

    def test_star(self, library) -> None:
        assert len(find_tracks(library, "*")) == 2

    def test_by_id(self, library) -> None:
        assert find_tracks(library, "2")[0].title == "Flim"

    def test_by_title_case_insensitive(self, library) -> None:
        assert find_tracks(library, "flim")[0].title == "Flim"

    def test_by_title_and_artist(self, library) -> None:
        assert find_tracks(library, "Flim - Aphex Twin")[0].title == "Flim"

    def test_by_filename(self, library) -> None:
        assert find_tracks(library, "b.mp3")[0].title == "Flim"

    def test_nothing_matches(self, library) -> None:
        with pytest.raises(NotFound):
            find_tracks(library, "Selected Ambient Works")


# =============================================================================
# Commit failures
# =============================================================================


class TestCommitFailures:
    def test_interrupted_copy(self, mount, make_source, tags: TagInfo, monkeypatch) -> None:
        """A failed second copy removes the first and leaves the database alone."""
        before = mount.database_path.read_bytes()
        editor = LibraryEditor(load_library(mount), mount)
        first = editor.add(make_source("a.mp3"), tags)
        editor.add(make_source("b.mp3"), tags)

        real_copyfile = shutil.copyfile
        calls = []

        def flaky_copyfile(src, dst):
            calls.append(src)
            if len(calls) == 2:
                raise OSError("No space left on device")
            return real_copyfile(src, dst)

        monkeypatch.setattr(shutil, "copyfile", flaky_copyfile)
        with pytest.raises(CopyFailed):
            editor.commit()

        assert mount.database_path.read_bytes() == before
        assert not (mount.root / from_location(first.location)).exists()

    def test_failed_write_rolls_back_copies(self, mount, make_source, tags: TagInfo, monkeypatch) -> None:
        before = mount.database_path.read_bytes()
        editor = LibraryEditor(load_library(mount), mount)
        track = editor.add(make_source("a.mp3"), tags)

        def broken_write(path, library, backup=True):
            raise OSError("read-only file system")

        monkeypatch.setattr("SyncEngine.library_editor.write_itunesdb", broken_write)
        with pytest.raises(WriteFailed):
            editor.commit()

        assert mount.database_path.read_bytes() == before
        assert not (mount.root / from_location(track.location)).exists()

    def test_unencodable_database_rolls_back_copies(self, mount, make_source, tags: TagInfo, monkeypatch) -> None:
        before = mount.database_path.read_bytes()
        editor = LibraryEditor(load_library(mount), mount)
        track = editor.add(make_source("a.mp3"), tags)

        def overflowing_write(path, library, backup=True):
            raise struct.error("'I' format requires 0 <= number <= 4294967295")

        monkeypatch.setattr("SyncEngine.library_editor.write_itunesdb", overflowing_write)
        with pytest.raises(WriteFailed):
            editor.commit()

        assert mount.database_path.read_bytes() == before
        assert not (mount.root / from_location(track.location)).exists()

    def test_failed_delete_rolls_back_copies(self, mount, make_source, tags: TagInfo, monkeypatch) -> None:
        """A refused deletion removes this session's copies and keeps the old database and file."""
        editor = LibraryEditor(load_library(mount), mount)
        existing = editor.add(make_source("old.mp3"), tags)
        editor.commit()
        before = mount.database_path.read_bytes()
        doomed = mount.root / from_location(existing.location)

        editor = LibraryEditor(load_library(mount), mount)
        added = editor.add(make_source("new.mp3"), TagInfo(title="New"))
        editor.remove(existing.track_id)

        real_unlink = Path.unlink

        def guarded_unlink(self, missing_ok=False):
            if self == doomed:
                raise PermissionError(13, "Permission denied", str(self))
            return real_unlink(self, missing_ok=missing_ok)

        monkeypatch.setattr(Path, "unlink", guarded_unlink)
        with pytest.raises(DeleteFailed):
            editor.commit()

        assert mount.database_path.read_bytes() == before
        assert doomed.exists()
        assert not (mount.root / from_location(added.location)).exists()

    def test_backup_written(self, mount, make_source, tags: TagInfo) -> None:
        before = mount.database_path.read_bytes()
        editor = LibraryEditor(load_library(mount), mount)
        editor.add(make_source("a.mp3"), tags)
        editor.commit()

        backup = mount.database_path.with_name("iTunesDB.backup")
        assert backup.read_bytes() == before

    def test_no_backup_when_disabled(self, mount, make_source, tags: TagInfo) -> None:
        editor = LibraryEditor(load_library(mount), mount, backup=False)
        editor.add(make_source("a.mp3"), tags)
        editor.commit()

        assert not mount.database_path.with_name("iTunesDB.backup").exists()


# =============================================================================
# Integrity
# =============================================================================


class TestIntegrity:
    def test_clean(self, mount, make_source, tags: TagInfo) -> None:
        editor = LibraryEditor(load_library(mount), mount)
        editor.add(make_source("a.mp3"), tags)

        report = editor.commit()

        assert report.is_clean

    def test_drops_missing_files(self, mount, make_source, tags: TagInfo) -> None:
        editor = LibraryEditor(load_library(mount), mount)
        gone = editor.add(make_source("a.mp3"), tags)
        kept = editor.add(make_source("b.mp3"), TagInfo(title="Kept"))
        editor.commit()
        (mount.root / from_location(gone.location)).unlink()

        library = load_library(mount)
        report = drop_missing_tracks(mount, library)

        assert [t.track_id for t in report.missing_files] == [gone.track_id]
        assert library.track_ids == {kept.track_id}
        assert library.master_playlist.track_ids == [kept.track_id]
        assert not report.is_clean
        assert "1 tracks" in report.summary

    def test_commit_drops_missing_files(self, mount, make_source, tags: TagInfo) -> None:
        editor = LibraryEditor(load_library(mount), mount)
        gone = editor.add(make_source("a.mp3"), tags)
        editor.commit()
        (mount.root / from_location(gone.location)).unlink()

        editor = LibraryEditor(load_library(mount), mount)
        editor.add(make_source("b.mp3"), TagInfo(title="New"))
        report = editor.commit()

        assert [t.track_id for t in report.missing_files] == [gone.track_id]
        assert [t.title for t in reload(mount).tracks] == ["New"]
