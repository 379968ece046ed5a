"""Tests for SyncEngine.device: mount detection, locations and file moves."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from SyncEngine.device import (
    allocate_device_path,
    copy_from_device,
    copy_to_device,
    delete_from_device,
    from_location,
    mangle_filename,
    to_location,
    validate_mount,
)
from SyncEngine.errors import CopyFailed, DeleteFailed, NotMounted


class TestValidateMount:
    def test_finds_ipod_control(self, ipod_root: Path) -> None:
        mount = validate_mount(ipod_root)

        assert mount.root == ipod_root
        assert mount.control_dir == "iPod_Control"
        assert mount.database_path == ipod_root / "iPod_Control" / "iTunes" / "iTunesDB"

    def test_trailing_separator_stripped(self, ipod_root: Path) -> None:
        assert validate_mount(str(ipod_root) + "/").root == ipod_root

    def test_itunes_control(self, tmp_path: Path) -> None:
        (tmp_path / "iTunes_Control").mkdir()
        assert validate_mount(tmp_path).control_dir == "iTunes_Control"

    def test_not_a_device(self, tmp_path: Path) -> None:
        with pytest.raises(NotMounted) as exc_info:
            validate_mount(tmp_path)
        assert "invalid device mount" in str(exc_info.value)
        assert exc_info.value.hints


class TestLocations:
    def test_to_location(self) -> None:
        assert to_location(Path("iPod_Control/Music/F00/a.mp3")) == ":iPod_Control:Music:F00:a.mp3"

    def test_from_location(self) -> None:
        assert from_location(":iPod_Control:Music:F07:b.m4a") == Path("iPod_Control/Music/F07/b.m4a")

    def test_from_empty_location(self) -> None:
        assert from_location("") == Path()

    def test_inverse(self) -> None:
        relative = Path("iPod_Control") / "Music" / "F12" / "Some Song.mp3"
        assert from_location(to_location(relative)) == relative


class TestMangleFilename:
    def test_reserved_characters(self) -> None:
        assert mangle_filename('AC/DC: "Live"?.mp3') == "AC_DC_ _Live__.mp3"

    def test_trailing_dots_and_spaces(self) -> None:
        assert mangle_filename("name. . ") == "name"

    def test_never_empty(self) -> None:
        assert mangle_filename("...") == "track"


class TestAllocateDevicePath:
    def test_fresh_device_picks_folder_without_creating_it(self, mount) -> None:
        relative = allocate_device_path(mount, "song.mp3", folder_count=5)

        assert not mount.music_dir.exists()
        assert relative.parent.name in ["F00", "F01", "F02", "F03", "F04"]
        assert relative.parent.parent == Path("iPod_Control/Music")
        assert relative.name == "song.mp3"
        assert not relative.is_absolute()

    def test_uses_existing_folders(self, mount) -> None:
        (mount.music_dir / "F07").mkdir(parents=True)

        relative = allocate_device_path(mount, "song.mp3")

        assert relative == Path("iPod_Control/Music/F07/song.mp3")
        assert sorted(p.name for p in mount.music_dir.iterdir()) == ["F07"]

    def test_suffix_on_existing_file(self, mount) -> None:
        (mount.music_dir / "F00").mkdir(parents=True)
        (mount.music_dir / "F00" / "song.mp3").write_bytes(b"x")

        relative = allocate_device_path(mount, "song.mp3")

        assert relative == Path("iPod_Control/Music/F00/song 1.mp3")

    def test_suffix_on_staged_path(self, mount) -> None:
        (mount.music_dir / "F00").mkdir(parents=True)
        taken = [Path("iPod_Control/Music/F00/song.mp3"), Path("iPod_Control/Music/F00/song 1.mp3")]

        relative = allocate_device_path(mount, "song.mp3", taken=taken)

        assert relative == Path("iPod_Control/Music/F00/song 2.mp3")


class TestCopyAndDelete:
    def test_copy_to_device(self, mount, make_source) -> None:
        source = make_source("a.mp3", b"audio")
        relative = Path("iPod_Control/Music/F03/a.mp3")

        destination = copy_to_device(mount, source, relative)

        assert destination.read_bytes() == b"audio"
        assert not destination.with_name("a.mp3.part").exists()

    def test_interrupted_copy_leaves_nothing(self, mount, make_source, monkeypatch) -> None:
        source = make_source("a.mp3", b"audio")
        relative = Path("iPod_Control/Music/F03/a.mp3")

        def failing_copy(src, dst):
            Path(dst).write_bytes(b"aud")
            raise OSError("No space left on device")

        monkeypatch.setattr(shutil, "copyfile", failing_copy)
        with pytest.raises(CopyFailed):
            copy_to_device(mount, source, relative)

        assert list((mount.root / relative).parent.iterdir()) == []

    def test_missing_source(self, mount, tmp_path: Path) -> None:
        with pytest.raises(CopyFailed):
            copy_to_device(mount, tmp_path / "nope.mp3", Path("iPod_Control/Music/F00/nope.mp3"))

    def test_copy_from_device(self, mount, tmp_path: Path) -> None:
        on_device = mount.music_dir / "F01" / "b.mp3"
        on_device.parent.mkdir(parents=True)
        on_device.write_bytes(b"tune")

        target = copy_from_device(mount, Path("iPod_Control/Music/F01/b.mp3"), tmp_path / "b.mp3")

        assert target.read_bytes() == b"tune"

    def test_delete(self, mount) -> None:
        on_device = mount.music_dir / "F01" / "b.mp3"
        on_device.parent.mkdir(parents=True)
        on_device.write_bytes(b"tune")

        delete_from_device(mount, Path("iPod_Control/Music/F01/b.mp3"))

        assert not on_device.exists()

    def test_delete_missing_is_fine(self, mount) -> None:
        delete_from_device(mount, Path("iPod_Control/Music/F01/gone.mp3"))

    def test_delete_directory_fails(self, mount) -> None:
        (mount.music_dir / "F01" / "dir.mp3").mkdir(parents=True)
        with pytest.raises(DeleteFailed):
            delete_from_device(mount, Path("iPod_Control/Music/F01/dir.mp3"))
