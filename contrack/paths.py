"""Where contrack keeps its database and registry file.

A ``.contrack`` directory found by walking up from the working directory wins;
otherwise the per-OS application data/config directories are used.
"""

import os
import platform
from pathlib import Path
from typing import Optional

from contrack.config import get_settings
from contrack.exceptions import StorageError

MARKER_DIR = ".contrack"
APP_NAME = "contrack"
DB_FILENAME = "contributions.db"
CONFIG_FILENAME = "config.toml"


def find_contrack_dir(start: Optional[Path] = None) -> Optional[Path]:
    """Return the nearest ``.contrack`` directory at or above ``start``."""
    current = Path(start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / MARKER_DIR
        if candidate.is_dir():
            return candidate
    return None


def app_data_dir() -> Path:
    system = platform.system()
    if system == "Windows":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            return Path(base) / APP_NAME
        return Path.home() / "AppData" / "Local" / APP_NAME
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    base = os.environ.get("XDG_DATA_HOME")
    return (Path(base) if base else Path.home() / ".local" / "share") / APP_NAME


def app_config_dir() -> Path:
    system = platform.system()
    if system in ("Windows", "Darwin"):
        return app_data_dir()
    base = os.environ.get("XDG_CONFIG_HOME")
    return (Path(base) if base else Path.home() / ".config") / APP_NAME


def _ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"Failed to create directory {path}: {e}") from e
    return path


def get_database_path() -> Path:
    """Resolve the database file, creating its parent directory."""
    settings = get_settings()
    if settings.db_path:
        db_path = Path(settings.db_path).expanduser()
    elif contrack_dir := find_contrack_dir():
        db_path = contrack_dir / DB_FILENAME
    else:
        db_path = app_data_dir() / DB_FILENAME
    _ensure_dir(db_path.parent)
    return db_path


def get_config_path() -> Path:
    """Resolve the registry file. The file itself may not exist yet."""
    settings = get_settings()
    if settings.config_path:
        return Path(settings.config_path).expanduser()
    if contrack_dir := find_contrack_dir():
        return contrack_dir / CONFIG_FILENAME
    return app_config_dir() / CONFIG_FILENAME


def describe_locations() -> dict:
    """Project-local and global candidates, plus which ones are in effect."""
    local_dir = find_contrack_dir()
    return {
        "local_dir": local_dir,
        "local_db": local_dir / DB_FILENAME if local_dir else None,
        "local_config": local_dir / CONFIG_FILENAME if local_dir else None,
        "global_db": app_data_dir() / DB_FILENAME,
        "global_config": app_config_dir() / CONFIG_FILENAME,
        "active_db": get_database_path(),
        "active_config": get_config_path(),
    }
