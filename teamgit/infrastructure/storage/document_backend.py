"""Activity backend storing one Cosmos DB row per tenant user."""

from __future__ import annotations

import logging
import threading
from typing import Any

from azure.core.exceptions import AzureError
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from teamgit.config import STORAGE_DOCUMENT
from teamgit.domain.entities import (
    DEFAULT_TENANT,
    ActivityEvent,
    UserRecord,
    make_user_id,
    sort_by_recent_activity,
)
from teamgit.domain.exceptions import BackendUnavailable

from .base import ActivityBackend
from .cosmos import CosmosContainerProvider
from .documents import MalformedDocumentError, record_from_document, record_to_document

logger = logging.getLogger(__name__)


class DocumentActivityBackend(ActivityBackend):
    """Persist user records in a Cosmos DB container partitioned by email."""

    storage_type = STORAGE_DOCUMENT

    def __init__(self, provider: CosmosContainerProvider) -> None:
        self._provider = provider
        self._skipped_lock = threading.Lock()
        self.skipped_documents = 0

    def is_configured(self) -> bool:
        return self._provider.is_configured()

    def record_activity(self, event: ActivityEvent) -> None:
        tenant = event.tenant or DEFAULT_TENANT
        email = event.user_email.lower()
        container = self._provider.get_container()

        record = self._read_record(container, make_user_id(tenant, email), email)
        if record is None:
            record = UserRecord.from_event(event, tenant)
        record.apply(event)

        try:
            container.upsert_item(body=record_to_document(record))
        except AzureError as exc:
            raise BackendUnavailable(f"Could not save user {record.id}") from exc

    def get_all_users(self, tenant: str | None = None) -> list[UserRecord]:
        container = self._provider.get_container()

        query = "SELECT * FROM c"
        parameters: list[dict[str, Any]] = []
        if tenant is not None:
            query += " WHERE c.tenant = @tenant"
            parameters.append({"name": "@tenant", "value": tenant})
        query += " ORDER BY c.lastActivity DESC"

        try:
            documents = list(
                container.query_items(
                    query=query,
                    parameters=parameters or None,
                    enable_cross_partition_query=True,
                )
            )
        except AzureError as exc:
            raise BackendUnavailable("Could not query users") from exc

        records: list[UserRecord] = []
        for document in documents:
            try:
                records.append(record_from_document(document))
            except MalformedDocumentError as exc:
                self._count_skip("Skipping malformed user row: %s", exc)
        return sort_by_recent_activity(records)

    def get_user_by_email(self, tenant: str, email: str) -> UserRecord | None:
        email = email.strip().lower()
        container = self._provider.get_container()
        return self._read_record(container, make_user_id(tenant, email), email)

    def delete_user(self, tenant: str, email: str) -> None:
        email = email.strip().lower()
        container = self._provider.get_container()
        user_id = make_user_id(tenant, email)
        try:
            container.delete_item(item=user_id, partition_key=email)
        except CosmosResourceNotFoundError:
            return
        except AzureError as exc:
            raise BackendUnavailable(f"Could not delete user {user_id}") from exc

    def _read_record(
        self, container: Any, user_id: str, partition_key: str
    ) -> UserRecord | None:
        try:
            document = container.read_item(item=user_id, partition_key=partition_key)
        except CosmosResourceNotFoundError:
            return None
        except AzureError as exc:
            raise BackendUnavailable(f"Could not read user {user_id}") from exc

        try:
            return record_from_document(document)
        except MalformedDocumentError as exc:
            self._count_skip("Ignoring malformed row %s: %s", user_id, exc)
            return None

    def _count_skip(self, message: str, *args: object) -> None:
        with self._skipped_lock:
            self.skipped_documents += 1
        logger.warning(message, *args)


__all__ = ["DocumentActivityBackend"]
