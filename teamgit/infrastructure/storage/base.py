"""Contract shared by every activity storage backend."""

from __future__ import annotations

from abc import ABC, abstractmethod

from teamgit.domain.entities import ActivityEvent, UserRecord


class ActivityBackend(ABC):
    """Persistence operations the activity store relies on.

    Events handed to :meth:`record_activity` are already normalized: the email
    and tenant are lower-cased and every optional field has been defaulted.
    Implementations raise ``BackendUnavailable`` when storage cannot be
    reached and ``ConfigurationError`` when required settings are missing.
    """

    storage_type: str

    @abstractmethod
    def record_activity(self, event: ActivityEvent) -> None:
        """Create or update the record of the user that sent ``event``."""

    @abstractmethod
    def get_all_users(self, tenant: str | None = None) -> list[UserRecord]:
        """Return users of ``tenant`` (or of every tenant), most recent first."""

    @abstractmethod
    def get_user_by_email(self, tenant: str, email: str) -> UserRecord | None:
        """Return the record for ``email`` in ``tenant`` if it exists."""

    @abstractmethod
    def delete_user(self, tenant: str, email: str) -> None:
        """Delete the record for ``email`` in ``tenant``; no-op when absent."""

    def is_configured(self) -> bool:
        """Return ``True`` when the backend has everything it needs to run."""

        return True


__all__ = ["ActivityBackend"]
