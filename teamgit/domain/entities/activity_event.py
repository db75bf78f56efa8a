"""Domain entity describing one incoming git activity report."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .file_edit import FileEdit

DEFAULT_TENANT = "default"
UNKNOWN_VALUE = "unknown"


@dataclass(frozen=True)
class ActivityEvent:
    """Snapshot of a user's working tree sent after a git command."""

    timestamp: datetime | None
    user_name: str
    user_email: str
    repo_name: str
    branch: str
    machine_name: str
    remote_url: str | None = None
    modified_files: tuple[FileEdit, ...] = ()
    tenant: str | None = None


__all__ = ["ActivityEvent", "DEFAULT_TENANT", "UNKNOWN_VALUE"]
