"""Domain entities exposed by the application."""

from .activity_event import DEFAULT_TENANT, UNKNOWN_VALUE, ActivityEvent
from .file_edit import FileEdit, FileStatus
from .user_record import (
    ActivityEntry,
    UserRecord,
    make_activity_key,
    make_user_id,
    sort_by_recent_activity,
)

__all__ = [
    "ActivityEntry",
    "ActivityEvent",
    "DEFAULT_TENANT",
    "FileEdit",
    "FileStatus",
    "UNKNOWN_VALUE",
    "UserRecord",
    "make_activity_key",
    "make_user_id",
    "sort_by_recent_activity",
]
