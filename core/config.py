"""User settings for taskmgr, read from config.yaml in the workspace root."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.fileio import read_yaml, write_yaml_atomic
from core.workspace import config_path

logger = logging.getLogger(__name__)

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


def _positive_float(value: Any, default: float) -> float:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return default
    return f if f > 0 else default


@dataclass
class Settings:
    timezone: str = "UTC"
    reminder_interval_seconds: float = 30.0
    due_soon_minutes: int = 60
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        level = str(d.get("log_level", "INFO")).upper()
        return cls(
            timezone=str(d.get("timezone") or "UTC"),
            reminder_interval_seconds=_positive_float(d.get("reminder_interval_seconds"), 30.0),
            due_soon_minutes=int(_positive_float(d.get("due_soon_minutes"), 60)),
            log_level=level if level in LOG_LEVELS else "INFO",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "reminder_interval_seconds": self.reminder_interval_seconds,
            "due_soon_minutes": self.due_soon_minutes,
            "log_level": self.log_level,
        }

    @property
    def log_level_no(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)


def init_config(root: Path | None = None) -> bool:
    """Write a default config.yaml if none exists. Returns True if written."""
    path = config_path(root)
    if path.exists():
        return False
    write_yaml_atomic(path, Settings().to_dict())
    logger.info("Wrote default settings to %s", path)
    return True


def load_settings(root: Path | None = None) -> Settings:
    """Load config.yaml; a missing or unreadable file yields defaults."""
    path = config_path(root)
    try:
        return Settings.from_dict(read_yaml(path))
    except (OSError, yaml.YAMLError):
        logger.warning("Could not read %s; using default settings", path, exc_info=True)
        return Settings()
