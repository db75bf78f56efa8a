"""Activity store: ingestion, queries and activity classification."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timedelta
from typing import Callable

from teamgit.config import Settings
from teamgit.domain.entities import (
    DEFAULT_TENANT,
    UNKNOWN_VALUE,
    ActivityEvent,
    UserRecord,
    make_user_id,
)
from teamgit.domain.exceptions import ValidationError
from teamgit.infrastructure.storage import ActivityBackend, create_backend
from teamgit.utils.datetime import ensure_utc, utc_now
from teamgit.utils.locks import KeyedLocks

logger = logging.getLogger(__name__)

ACTIVE_WINDOW = timedelta(minutes=30)


def normalize_tenant(tenant: str | None) -> str | None:
    """Return the canonical form of ``tenant`` or ``None`` when blank."""

    if tenant is None:
        return None
    normalized = tenant.strip().lower()
    return normalized or None


def _or_unknown(value: str | None) -> str:
    value = (value or "").strip()
    return value or UNKNOWN_VALUE


def normalize_event(event: ActivityEvent, *, now: datetime | None = None) -> ActivityEvent:
    """Validate ``event`` and fill in the defaults for missing values.

    Only the email is mandatory. The producer cannot always resolve the other
    values (for example a repository without a remote), so they fall back to
    ``"unknown"``, the tenant to ``"default"`` and the timestamp to ``now``.
    """

    email = (event.user_email or "").strip().lower()
    if not email:
        raise ValidationError("userEmail is required")

    timestamp = event.timestamp if event.timestamp is not None else (now or utc_now())
    remote_url = (event.remote_url or "").strip() or None

    return dataclasses.replace(
        event,
        timestamp=ensure_utc(timestamp),
        user_email=email,
        user_name=_or_unknown(event.user_name),
        repo_name=_or_unknown(event.repo_name),
        branch=_or_unknown(event.branch),
        machine_name=_or_unknown(event.machine_name),
        remote_url=remote_url,
        modified_files=tuple(event.modified_files or ()),
        tenant=normalize_tenant(event.tenant) or DEFAULT_TENANT,
    )


def is_user_active(record: UserRecord, *, now: datetime | None = None) -> bool:
    """Return ``True`` when the user did anything in the last 30 minutes."""

    now = now or utc_now()
    return now - ensure_utc(record.last_activity) < ACTIVE_WINDOW


def describe_recency(timestamp: datetime, *, now: datetime | None = None) -> str:
    """Return a short human description of how long ago ``timestamp`` was."""

    now = now or utc_now()
    elapsed_seconds = (now - ensure_utc(timestamp)).total_seconds()

    minutes = int(elapsed_seconds // 60)
    hours = int(elapsed_seconds // 3600)
    days = int(elapsed_seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{days}d ago"


class ActivityStore:
    """Entry point used by the API layer to record and query activity.

    Every write for one identity (``tenant::email``) is serialized through a
    lock held by the store, so concurrent events for the same user inside this
    process cannot overwrite each other's changes.
    """

    def __init__(
        self,
        backend: ActivityBackend,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._backend = backend
        self._clock = clock
        self._identity_locks = KeyedLocks()

    @property
    def backend(self) -> ActivityBackend:
        return self._backend

    @property
    def storage_type(self) -> str:
        return self._backend.storage_type

    def is_configured(self) -> bool:
        return self._backend.is_configured()

    def now(self) -> datetime:
        return self._clock()

    def record_activity(self, event: ActivityEvent) -> ActivityEvent:
        """Normalize ``event`` and merge it into its user's record."""

        normalized = normalize_event(event, now=self._clock())
        user_id = make_user_id(normalized.tenant or DEFAULT_TENANT, normalized.user_email)
        with self._identity_locks.get(user_id):
            self._backend.record_activity(normalized)
        logger.debug(
            "Recorded activity for %s on %s::%s",
            user_id,
            normalized.repo_name,
            normalized.machine_name,
        )
        return normalized

    def get_all_users(self, tenant: str | None) -> list[UserRecord]:
        """Return every user of ``tenant``, most recently active first."""

        return self._backend.get_all_users(self._require_tenant(tenant))

    def get_active_users(self, tenant: str | None) -> list[UserRecord]:
        """Return the users of ``tenant`` active in the last 30 minutes."""

        now = self._clock()
        return [
            record
            for record in self.get_all_users(tenant)
            if is_user_active(record, now=now)
        ]

    def get_user(self, tenant: str | None, email: str) -> UserRecord | None:
        tenant = self._require_tenant(tenant)
        email = (email or "").strip().lower()
        if not email:
            return None
        return self._backend.get_user_by_email(tenant, email)

    def delete_user(self, tenant: str | None, email: str) -> None:
        tenant = self._require_tenant(tenant)
        email = (email or "").strip().lower()
        if not email:
            return
        with self._identity_locks.get(make_user_id(tenant, email)):
            self._backend.delete_user(tenant, email)

    def is_user_active(self, record: UserRecord) -> bool:
        return is_user_active(record, now=self._clock())

    def describe_recency(self, timestamp: datetime) -> str:
        return describe_recency(timestamp, now=self._clock())

    def scan_all_users(self) -> list[UserRecord]:
        """Return users across every tenant.

        Maintenance only: the HTTP layer never calls this, user-facing queries
        go through :meth:`get_all_users` which requires a tenant.
        """

        return self._backend.get_all_users(None)

    def delete_user_if_idle(self, tenant: str, email: str, cutoff: datetime) -> bool:
        """Delete the user if its last activity is still older than ``cutoff``.

        The record is read again under the identity lock, so an event recorded
        after the caller looked at the user keeps it alive.
        """

        email = email.strip().lower()
        with self._identity_locks.get(make_user_id(tenant, email)):
            record = self._backend.get_user_by_email(tenant, email)
            if record is None or ensure_utc(record.last_activity) >= cutoff:
                return False
            self._backend.delete_user(tenant, email)
        return True

    @staticmethod
    def _require_tenant(tenant: str | None) -> str:
        normalized = normalize_tenant(tenant)
        if normalized is None:
            raise ValidationError("Tenant parameter is required")
        return normalized


def create_activity_store(settings: Settings) -> ActivityStore:
    """Build the store with the backend selected in ``settings``."""

    backend = create_backend(settings)
    logger.info("Using %s storage backend", backend.storage_type)
    return ActivityStore(backend)


__all__ = [
    "ACTIVE_WINDOW",
    "ActivityStore",
    "create_activity_store",
    "describe_recency",
    "is_user_active",
    "normalize_event",
    "normalize_tenant",
]
