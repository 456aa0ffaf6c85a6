"""
Default storage locations.
"""

from __future__ import annotations

from pathlib import Path

import platformdirs

LOG_SUBDIR = "Logs"
LOG_FILENAME = "app.log"


def default_log_dir(app_name: str) -> Path:
    """``<user data dir>/Logs`` for the given application."""
    return Path(platformdirs.user_data_dir(appname=app_name, appauthor=False)) / LOG_SUBDIR


def log_file_path(log_dir: Path) -> Path:
    return log_dir / LOG_FILENAME
