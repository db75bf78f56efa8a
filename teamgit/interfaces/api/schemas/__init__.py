from .activity import (
    ActivityEntryRead,
    ActivityEventPayload,
    FileEditPayload,
    RecordActivityResponse,
    StorageStatusRead,
    UserActivityRead,
    UsersResponse,
)

__all__ = [
    "ActivityEntryRead",
    "ActivityEventPayload",
    "FileEditPayload",
    "RecordActivityResponse",
    "StorageStatusRead",
    "UserActivityRead",
    "UsersResponse",
]
