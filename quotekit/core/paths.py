from __future__ import annotations

import os
from pathlib import Path

# Overrides the user-writable directory (settings.json, quotekit.db)
HOME_ENV = "QUOTEKIT_HOME"


def base_path() -> Path:
    """Return the project root, where bundled resources (assets/) live."""
    return Path(__file__).resolve().parents[2]


def resource_path(rel: str | Path) -> Path:
    """Resolve a resource path (e.g., 'assets/header.png') against the project root."""
    rel = Path(rel)
    return base_path() / rel


def user_writable_dir() -> Path:
    """Directory suitable for user-writable files (like settings.json).

    - If QUOTEKIT_HOME is set, use it.
    - Otherwise use the project root.
    """
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return base_path()


def settings_path() -> Path:
    """Location for settings.json that is readable and writable."""
    return user_writable_dir() / "settings.json"


def default_archive_dir() -> Path:
    """Default folder for exported documents when no archive root is configured."""
    return Path.home() / "Documents" / "Quotations"
