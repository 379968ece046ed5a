"""
sssink settings with JSON persistence.

Settings are stored in the user's config directory:
  $SSSINK_CONFIG_DIR/settings.json, if the variable is set, otherwise
  Windows: %APPDATA%/sssink/settings.json
  macOS:   ~/Library/Application Support/sssink/settings.json
  Linux:   $XDG_CONFIG_HOME/sssink/settings.json (~/.config by default)

`--config PATH` on the command line points at a different file.
"""

import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "SSSINK_CONFIG_DIR"


def default_settings_dir() -> str:
    """Get the platform-appropriate settings directory."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return override
    if sys.platform == "win32":
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
    elif sys.platform == "darwin":
        base = os.path.join(os.path.expanduser("~"), "Library", "Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME", os.path.join(os.path.expanduser("~"), ".config"))
    return os.path.join(base, "sssink")


def default_settings_path() -> str:
    return os.path.join(default_settings_dir(), "settings.json")


@dataclass
class AppSettings:
    """All user-configurable settings."""

    # ── Sync ────────────────────────────────────────────────────────────────
    # Refuse to push a track whose (title, artist, album) is already on the device
    reject_duplicates: bool = False

    # Copy iTunesDB to iTunesDB.backup before every rewrite
    backup_database: bool = True

    # Number of Fnn folders to create under Music/ on a device that has none
    music_folder_count: int = 20

    # ── Output ──────────────────────────────────────────────────────────────
    # DEBUG logging without passing -v every time
    verbose: bool = False

    def save(self, path: Optional[str] = None) -> None:
        """Write settings atomically (temp file + rename)."""
        path = path or default_settings_path()
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

        tmp = path + ".tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(asdict(self), f, indent=2, ensure_ascii=False)
            os.replace(tmp, path)
        except OSError:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    @classmethod
    def load(cls, path: Optional[str] = None) -> "AppSettings":
        """Load settings from JSON, returning defaults for missing keys."""
        path = path or default_settings_path()
        settings = cls()
        if not os.path.exists(path):
            return settings
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable settings file {path}: {e}")
            return settings

        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {path}: top level is not an object")
            return settings

        # Only set known fields, ignoring unknown keys and wrong types
        for key, value in data.items():
            if not hasattr(settings, key):
                continue
            expected_type = type(getattr(settings, key))
            if isinstance(value, expected_type) and isinstance(value, bool) == (expected_type is bool):
                setattr(settings, key, value)
            else:
                logger.debug(f"Ignoring setting {key}={value!r} (expected {expected_type.__name__})")
        return settings
