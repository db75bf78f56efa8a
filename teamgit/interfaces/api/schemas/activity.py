"""Pydantic schemas for git activity ingestion and user queries."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from teamgit.domain.entities import (
    ActivityEntry,
    ActivityEvent,
    FileEdit,
    FileStatus,
    UserRecord,
)
from teamgit.utils.datetime import parse_timestamp


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileEditPayload(_CamelModel):
    file_path: str = Field("", description="Path of the file relative to the repository root")
    status: FileStatus = Field(..., description="Git status of the file")
    is_staged: bool = Field(False, description="Whether the change is staged")

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: object) -> object:
        if isinstance(value, str):
            return FileStatus.from_code(value)
        return value

    @classmethod
    def from_entity(cls, edit: FileEdit) -> "FileEditPayload":
        return cls(file_path=edit.file_path, status=edit.status, is_staged=edit.is_staged)

    def to_entity(self) -> FileEdit:
        return FileEdit(file_path=self.file_path, status=self.status, is_staged=self.is_staged)


class ActivityEventPayload(_CamelModel):
    """Activity report sent by the git wrapper after each tracked command."""

    timestamp: datetime | None = Field(None, description="Moment the command ran")
    user_name: str | None = Field(None, description="Value of git config user.name")
    user_email: str | None = Field(None, description="Value of git config user.email")
    repo_name: str | None = Field(None, description="Repository name")
    branch: str | None = Field(None, description="Checked out branch")
    remote_url: str | None = Field(None, description="URL of the origin remote")
    modified_files: list[FileEditPayload] = Field(
        default_factory=list,
        description="Files with pending changes",
    )
    machine_name: str | None = Field(None, description="Host that ran the command")
    tenant: str | None = Field(None, description="Team the activity belongs to")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: object) -> object:
        if isinstance(value, str) and value.strip():
            return parse_timestamp(value)
        if isinstance(value, str):
            return None
        return value

    def to_entity(self) -> ActivityEvent:
        return ActivityEvent(
            timestamp=self.timestamp,
            user_name=self.user_name or "",
            user_email=self.user_email or "",
            repo_name=self.repo_name or "",
            branch=self.branch or "",
            remote_url=self.remote_url,
            modified_files=tuple(edit.to_entity() for edit in self.modified_files),
            machine_name=self.machine_name or "",
            tenant=self.tenant,
        )


class RecordActivityResponse(_CamelModel):
    success: bool = True


class ActivityEntryRead(_CamelModel):
    repo_name: str
    branch: str
    remote_url: str | None = None
    modified_files: list[FileEditPayload] = Field(default_factory=list)
    last_updated: datetime
    machine_name: str

    @classmethod
    def from_entity(cls, entry: ActivityEntry) -> "ActivityEntryRead":
        return cls(
            repo_name=entry.repo_name,
            branch=entry.branch,
            remote_url=entry.remote_url,
            modified_files=[FileEditPayload.from_entity(edit) for edit in entry.modified_files],
            last_updated=entry.last_updated,
            machine_name=entry.machine_name,
        )


class UserActivityRead(_CamelModel):
    user_name: str = Field(..., description="Latest reported git user name")
    user_email: str = Field(..., description="Normalized email identifying the user")
    last_activity: datetime = Field(..., description="Most recent activity of any kind")
    last_seen: str = Field(..., description="Human readable time since the last activity")
    is_active: bool = Field(..., description="Active within the last 30 minutes")
    activities: list[ActivityEntryRead] = Field(
        default_factory=list,
        description="Latest state per repository and machine",
    )

    @classmethod
    def from_entity(
        cls, record: UserRecord, *, is_active: bool, last_seen: str
    ) -> "UserActivityRead":
        return cls(
            user_name=record.user_name,
            user_email=record.user_email,
            last_activity=record.last_activity,
            last_seen=last_seen,
            is_active=is_active,
            activities=[ActivityEntryRead.from_entity(entry) for entry in record.sorted_activities()],
        )


class UsersResponse(_CamelModel):
    error: str | None = Field(None, description="Reason the query was rejected")
    users: list[UserActivityRead] = Field(default_factory=list)
    total_count: int = 0
    active_count: int = 0


class StorageStatusRead(_CamelModel):
    storage_type: str = Field(..., description="Selected storage backend")
    configured: bool = Field(..., description="Whether the backend has its settings")


__all__ = [
    "ActivityEntryRead",
    "ActivityEventPayload",
    "FileEditPayload",
    "RecordActivityResponse",
    "StorageStatusRead",
    "UserActivityRead",
    "UsersResponse",
]
