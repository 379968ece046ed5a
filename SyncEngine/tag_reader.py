"""
Tag extraction for files about to be pushed.

Uses mutagen's easy interface so MP3 (ID3), MP4/M4A, FLAC and Ogg all come
back through the same keys. Nothing is ever written to the source file.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import mutagen
from mutagen.mp3 import BitrateMode

from .errors import NoTag, UnreadableSource

logger = logging.getLogger(__name__)


@dataclass
class TagInfo:
    title: str = ""
    artist: str = ""
    album: str = ""
    genre: str = ""
    comment: str = ""
    composer: str = ""
    year: int = 0
    track_number: int = 0
    disc_number: int = 0
    duration_ms: int = 0
    bitrate: int = 0  # kbps
    sample_rate: int = 0  # Hz
    vbr: bool = False


def _parse_number(value: Optional[str]) -> int:
    """'3', '3/12' or '2004-05-01' -> leading integer, 0 if none."""
    if not value:
        return 0
    head = value.split("/")[0].split("-")[0].strip()
    try:
        return int(head)
    except ValueError:
        return 0


def extract(path: str | os.PathLike) -> TagInfo:
    """
    Read tags and stream properties from an audio file.

    Raises:
        UnreadableSource: the file is missing or cannot be opened
        NoTag: mutagen does not recognize the format, or there is no tag block
    """
    path = os.fspath(path)

    # mutagen reports a missing file the same way as a corrupt one, so look first
    try:
        with open(path, "rb"):
            pass
    except OSError as e:
        raise UnreadableSource(f"cannot open {path}: {e.strerror or e}") from e

    try:
        audio = mutagen.File(path, easy=True)
    except mutagen.MutagenError as e:
        logger.debug(f"mutagen failed on {path}: {e}")
        raise NoTag(f"no readable tags in {path}") from e

    if audio is None:
        raise NoTag(f"unrecognized audio format: {path}")
    if audio.tags is None:
        raise NoTag(f"no tag block in {path}")

    def get_first(key: str) -> Optional[str]:
        val = audio.get(key)
        if val and len(val) > 0:
            return str(val[0])
        return None

    info = TagInfo(
        title=get_first("title") or "",
        artist=get_first("artist") or "",
        album=get_first("album") or "",
        genre=get_first("genre") or "",
        comment=get_first("comment") or "",
        composer=get_first("composer") or "",
        year=_parse_number(get_first("date") or get_first("year")),
        track_number=_parse_number(get_first("tracknumber")),
        disc_number=_parse_number(get_first("discnumber")),
    )

    # Duration etc. (always available from audio info)
    stream = getattr(audio, "info", None)
    if stream is not None:
        info.duration_ms = int((getattr(stream, "length", 0) or 0) * 1000)
        info.bitrate = (getattr(stream, "bitrate", 0) or 0) // 1000
        info.sample_rate = getattr(stream, "sample_rate", 0) or 0
        info.vbr = getattr(stream, "bitrate_mode", None) == BitrateMode.VBR

    logger.debug(f"Tags for {path}: {info}")
    return info
