"""
iPod Integrity Checker - runs right before every database write.

iTunesDB -> Filesystem
   For every track Location in the library, verify the file exists on the
   device. If it is missing, the track is dropped together with every
   playlist item pointing at it, so the firmware never sees an entry it
   cannot play.

Tracks without a Location (never copied, or video stubs) are left alone.
"""

import logging
from dataclasses import dataclass, field

from iTunesDB_Parser.model import Library, Track

from .device import Mount, from_location

logger = logging.getLogger(__name__)


@dataclass
class IntegrityReport:
    """Summary of what the integrity check found and fixed."""

    # Tracks in iTunesDB whose file is missing from the iPod filesystem
    missing_files: list[Track] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.missing_files

    @property
    def summary(self) -> str:
        if self.is_clean:
            return "Integrity check passed, every track has its file."
        return f"Integrity issues found: {len(self.missing_files)} tracks in DB but file missing on iPod"


def drop_missing_tracks(mount: Mount, library: Library) -> IntegrityReport:
    """Remove tracks whose audio file is missing. Mutates `library`."""
    from .library_editor import detach_tracks

    report = IntegrityReport()

    for track in library.tracks:
        if not track.location:
            continue
        full_path = mount.root / from_location(track.location)
        if not full_path.exists():
            logger.warning(f"Integrity: file missing for track '{track.title}' ({track.location})")
            report.missing_files.append(track)

    if report.missing_files:
        detach_tracks(library, {t.track_id for t in report.missing_files})
        logger.warning(report.summary)
    else:
        logger.debug(report.summary)

    return report
