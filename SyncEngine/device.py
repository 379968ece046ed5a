"""
Device filesystem adapter.

Everything that touches the iPod's storage goes through here: finding the
control directory, turning device paths into iTunesDB locations and back,
picking a home for a new file, and copying/deleting with temp files so a
half-written track never sits under its final name.

Layout on the device:
    <mount>/iPod_Control/iTunes/iTunesDB      (or iTunes_Control on phones)
    <mount>/iPod_Control/Music/F00 ... F49/   audio files
"""

import logging
import os
import random
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .errors import CopyFailed, DeleteFailed, NotMounted

logger = logging.getLogger(__name__)

CONTROL_DIRS = ("iPod_Control", "iTunes_Control")

# reserved on FAT/HFS+ or by the location syntax itself
_RESERVED_CHARS = ':/\\<>"|?*'
_MANGLE_TABLE = str.maketrans({ch: "_" for ch in _RESERVED_CHARS})

PART_SUFFIX = ".part"


@dataclass(frozen=True)
class Mount:
    root: Path
    control_dir: str

    @property
    def control_path(self) -> Path:
        return self.root / self.control_dir

    @property
    def database_path(self) -> Path:
        return self.control_path / "iTunes" / "iTunesDB"

    @property
    def music_dir(self) -> Path:
        return self.control_path / "Music"

    def __str__(self) -> str:
        return str(self.root)


def validate_mount(path: str | os.PathLike) -> Mount:
    """
    Normalize a mount point and find its control directory.

    Raises:
        NotMounted: neither iPod_Control nor iTunes_Control exists under path
    """
    raw = os.fspath(path)
    stripped = raw.rstrip("/\\") or raw[:1]  # keep a bare "/"
    root = Path(stripped)

    for control_dir in CONTROL_DIRS:
        if (root / control_dir).is_dir():
            logger.debug(f"Found {control_dir} under {root}")
            return Mount(root=root, control_dir=control_dir)

    raise NotMounted("invalid device mount")


def mangle_filename(name: str) -> str:
    """Make `name` safe as a single path component on the device."""
    mangled = name.translate(_MANGLE_TABLE)
    mangled = "".join(ch if ch.isprintable() else "_" for ch in mangled)
    mangled = mangled.rstrip(". ")
    return mangled or "track"


def to_location(relative_path: str | os.PathLike) -> str:
    """'iPod_Control/Music/F00/a.mp3' -> ':iPod_Control:Music:F00:a.mp3'"""
    parts = Path(relative_path).parts
    return ":" + ":".join(parts)


def from_location(location: str) -> Path:
    """':iPod_Control:Music:F00:a.mp3' -> Path('iPod_Control/Music/F00/a.mp3')"""
    parts = [p for p in location.split(":") if p]
    return Path(*parts) if parts else Path()


def music_folders(mount: Mount) -> list[Path]:
    if not mount.music_dir.is_dir():
        return []
    return sorted(p for p in mount.music_dir.iterdir() if p.is_dir() and p.name.startswith("F"))


def allocate_device_path(mount: Mount, source_name: str, taken: Iterable[str | os.PathLike] = (),
                         folder_count: int = 20) -> Path:
    """
    Pick a music folder and a free name for a new file.

    Returns the path relative to the mount root. A numeric suffix is added
    when the mangled name already exists on disk or is in `taken` (paths
    staged by this session but not copied yet). Nothing is created on the
    device; a fresh Fnn folder appears when the copy lands.
    """
    folders = music_folders(mount)
    if folders:
        folder = random.choice(folders)
    else:
        folder = mount.music_dir / f"F{random.randrange(folder_count):02d}"
    taken_paths = {Path(p) for p in taken}

    stem, ext = os.path.splitext(mangle_filename(source_name))
    candidate = stem + ext
    n = 1
    while True:
        relative = folder.relative_to(mount.root) / candidate
        if relative not in taken_paths and not (mount.root / relative).exists():
            return relative
        candidate = f"{stem} {n}{ext}"
        n += 1


def _copy_via_part(source: Path, destination: Path) -> None:
    part = destination.with_name(destination.name + PART_SUFFIX)
    try:
        shutil.copyfile(source, part)
        shutil.copystat(source, part)
        os.replace(part, destination)
    except OSError:
        if part.exists():
            part.unlink()
        raise


def copy_to_device(mount: Mount, source: str | os.PathLike, device_relative_path: str | os.PathLike) -> Path:
    """
    Copy a file onto the device under its final name.

    Raises:
        CopyFailed: the copy did not complete; no partial file is left behind
    """
    destination = mount.root / device_relative_path
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        _copy_via_part(Path(source), destination)
    except OSError as e:
        logger.error(f"Copy failed for {source} -> {destination}: {e}")
        raise CopyFailed(f"could not copy {source} to the device: {e}") from e

    logger.debug(f"Copied {source} -> {destination}")
    return destination


def delete_from_device(mount: Mount, device_relative_path: str | os.PathLike) -> None:
    """
    Delete a file from the device. A file that is already gone counts as deleted.

    Raises:
        DeleteFailed: the file exists but could not be removed
    """
    path = mount.root / device_relative_path
    try:
        path.unlink()
        logger.debug(f"Deleted: {path}")
    except FileNotFoundError:
        logger.debug(f"Already gone: {path}")
    except OSError as e:
        logger.error(f"Delete failed for {path}: {e}")
        raise DeleteFailed(f"could not delete {path}: {e}") from e


def copy_from_device(mount: Mount, device_relative_path: str | os.PathLike,
                     destination: str | os.PathLike) -> Path:
    """
    Copy a file from the device to the host.

    Raises:
        CopyFailed: the source is missing or the copy did not complete
    """
    source = mount.root / device_relative_path
    destination = Path(destination)
    try:
        _copy_via_part(source, destination)
    except OSError as e:
        logger.error(f"Copy failed for {source} -> {destination}: {e}")
        raise CopyFailed(f"could not copy {source} from the device: {e}") from e

    logger.debug(f"Copied {source} -> {destination}")
    return destination
