"""Mapping between user records and their stored JSON documents."""

from __future__ import annotations

from typing import Any, Mapping

from teamgit.domain.entities import ActivityEntry, FileEdit, FileStatus, UserRecord
from teamgit.utils.datetime import format_timestamp, parse_timestamp


class MalformedDocumentError(ValueError):
    """Raised when a stored document cannot be turned into a record."""


def file_edit_to_document(edit: FileEdit) -> dict[str, Any]:
    return {
        "filePath": edit.file_path,
        "status": edit.status.value,
        "isStaged": edit.is_staged,
    }


def entry_to_document(entry: ActivityEntry) -> dict[str, Any]:
    return {
        "repoName": entry.repo_name,
        "branch": entry.branch,
        "remoteUrl": entry.remote_url,
        "modifiedFiles": [file_edit_to_document(edit) for edit in entry.modified_files],
        "lastUpdated": format_timestamp(entry.last_updated),
        "machineName": entry.machine_name,
    }


def record_to_document(record: UserRecord) -> dict[str, Any]:
    """Return the camelCase document persisted for ``record``."""

    return {
        "id": record.id,
        "tenant": record.tenant,
        "userEmail": record.user_email,
        "userName": record.user_name,
        "lastActivity": format_timestamp(record.last_activity),
        "activities": {
            key: entry_to_document(entry) for key, entry in record.activities.items()
        },
    }


def _file_edit_from_document(document: Mapping[str, Any]) -> FileEdit:
    return FileEdit(
        file_path=str(document["filePath"]),
        status=FileStatus.from_code(str(document["status"])),
        is_staged=bool(document.get("isStaged", False)),
    )


def _entry_from_document(document: Mapping[str, Any]) -> ActivityEntry:
    return ActivityEntry(
        repo_name=str(document["repoName"]),
        branch=str(document["branch"]),
        remote_url=document.get("remoteUrl") or None,
        modified_files=tuple(
            _file_edit_from_document(edit) for edit in document.get("modifiedFiles") or []
        ),
        last_updated=parse_timestamp(document["lastUpdated"]),
        machine_name=str(document["machineName"]),
    )


def record_from_document(document: Any) -> UserRecord:
    """Build a :class:`UserRecord` from a stored document.

    Storage-specific keys (Cosmos DB system properties such as ``_etag``) are
    ignored. Any structural problem raises :class:`MalformedDocumentError`.
    """

    if not isinstance(document, Mapping):
        raise MalformedDocumentError("User document must be a JSON object")

    try:
        activities = document.get("activities") or {}
        return UserRecord(
            id=str(document["id"]),
            tenant=str(document["tenant"]),
            user_email=str(document["userEmail"]),
            user_name=str(document.get("userName") or ""),
            last_activity=parse_timestamp(document["lastActivity"]),
            activities={
                str(key): _entry_from_document(entry) for key, entry in activities.items()
            },
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise MalformedDocumentError(f"Invalid user document: {exc}") from exc


__all__ = [
    "MalformedDocumentError",
    "entry_to_document",
    "file_edit_to_document",
    "record_from_document",
    "record_to_document",
]
