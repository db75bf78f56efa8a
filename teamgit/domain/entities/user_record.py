"""Domain entities holding the latest known activity of a user."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .activity_event import ActivityEvent
from .file_edit import FileEdit


def make_user_id(tenant: str, email: str) -> str:
    """Return the identity key of the record owning ``email`` in ``tenant``."""

    return f"{tenant}::{email.strip().lower()}"


def make_activity_key(repo_name: str, machine_name: str) -> str:
    """Return the key under which a repository/machine pair is tracked."""

    return f"{repo_name}::{machine_name}"


@dataclass(frozen=True)
class ActivityEntry:
    """Latest state of one repository on one machine."""

    repo_name: str
    branch: str
    remote_url: str | None
    modified_files: tuple[FileEdit, ...]
    last_updated: datetime
    machine_name: str

    @property
    def key(self) -> str:
        return make_activity_key(self.repo_name, self.machine_name)

    @classmethod
    def from_event(cls, event: ActivityEvent) -> "ActivityEntry":
        return cls(
            repo_name=event.repo_name,
            branch=event.branch,
            remote_url=event.remote_url,
            modified_files=tuple(event.modified_files),
            last_updated=event.timestamp,
            machine_name=event.machine_name,
        )


@dataclass
class UserRecord:
    """Per-tenant state of one user, keyed by ``tenant::email``."""

    id: str
    tenant: str
    user_email: str
    user_name: str
    last_activity: datetime
    activities: dict[str, ActivityEntry] = field(default_factory=dict)

    @classmethod
    def from_event(cls, event: ActivityEvent, tenant: str) -> "UserRecord":
        """Create an empty record for the identity that sent ``event``."""

        return cls(
            id=make_user_id(tenant, event.user_email),
            tenant=tenant,
            user_email=event.user_email,
            user_name=event.user_name,
            last_activity=event.timestamp,
        )

    def apply(self, event: ActivityEvent) -> None:
        """Merge ``event`` into the record.

        The entry for the event's repository/machine pair is replaced as a whole;
        entries for other pairs are left untouched. ``last_activity`` always
        takes the event's timestamp, even if it is older than the current one.
        """

        entry = ActivityEntry.from_event(event)
        self.user_name = event.user_name
        self.last_activity = event.timestamp
        self.activities[entry.key] = entry

    def sorted_activities(self) -> list[ActivityEntry]:
        """Return the activity entries, most recently updated first."""

        return sorted(
            self.activities.values(),
            key=lambda entry: entry.last_updated,
            reverse=True,
        )


def sort_by_recent_activity(records: list[UserRecord]) -> list[UserRecord]:
    """Order ``records`` by ``last_activity`` descending, ties by ``id``."""

    ordered = sorted(records, key=lambda record: record.id)
    ordered.sort(key=lambda record: record.last_activity, reverse=True)
    return ordered


__all__ = [
    "ActivityEntry",
    "UserRecord",
    "make_activity_key",
    "make_user_id",
    "sort_by_recent_activity",
]
