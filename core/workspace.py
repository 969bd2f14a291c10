"""Workspace root, timezone, path helpers for taskmgr."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

STORAGE_KEY = "taskmgr:v1"


def workspace_root() -> Path:
    """Get the workspace root directory (holds config, hooks, data and logs)."""
    return Path(
        os.environ.get("TASKMGR_ROOT", str(Path.home() / ".taskmgr"))
    ).expanduser().resolve()


def get_user_timezone(name: str | None) -> ZoneInfo:
    """Resolve a timezone name from settings, defaulting to UTC."""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return ZoneInfo("UTC")


def now_local(tz: ZoneInfo) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(tz)


# ── Path helpers ──────────────────────────────────────────────

def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "config.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"


def state_path(root: Path | None = None) -> Path:
    """State file, named after the storage key so a new shape gets a new file."""
    if root is None:
        root = workspace_root()
    return root / "data" / (STORAGE_KEY.replace(":", "-") + ".json")


def logs_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "logs"
