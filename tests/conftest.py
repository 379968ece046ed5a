"""Shared fixtures: a fake iPod mounted under tmp_path and some source files."""

from __future__ import annotations

from pathlib import Path

import pytest

from iTunesDB_Writer import new_database
from SyncEngine.device import Mount, validate_mount
from SyncEngine.tag_reader import TagInfo


@pytest.fixture
def ipod_root(tmp_path: Path) -> Path:
    """A directory laid out like a freshly synced iPod."""
    root = tmp_path / "ipod"
    itunes = root / "iPod_Control" / "iTunes"
    itunes.mkdir(parents=True)
    (itunes / "iTunesDB").write_bytes(new_database())
    return root


@pytest.fixture
def mount(ipod_root: Path) -> Mount:
    return validate_mount(ipod_root)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    d = tmp_path / "music"
    d.mkdir()
    return d


@pytest.fixture
def make_source(source_dir: Path):
    """Factory for fake audio files on the host."""

    def _make(name: str = "song.mp3", payload: bytes = b"\xff\xfb" + b"\x00" * 126) -> Path:
        path = source_dir / name
        path.write_bytes(payload)
        return path

    return _make


@pytest.fixture
def tags() -> TagInfo:
    return TagInfo(
        title="Windowlicker",
        artist="Aphex Twin",
        album="Windowlicker EP",
        genre="Electronic",
        year=1999,
        track_number=1,
        disc_number=1,
        duration_ms=367000,
        bitrate=320,
        sample_rate=44100,
    )
