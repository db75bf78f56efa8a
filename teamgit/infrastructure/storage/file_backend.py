"""Activity backend storing one JSON document per tenant on local disk."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any

from teamgit.config import STORAGE_FILE
from teamgit.domain.entities import (
    DEFAULT_TENANT,
    ActivityEvent,
    UserRecord,
    make_user_id,
    sort_by_recent_activity,
)
from teamgit.domain.exceptions import BackendUnavailable
from teamgit.utils.datetime import utc_now
from teamgit.utils.locks import KeyedLocks

from .base import ActivityBackend
from .documents import MalformedDocumentError, record_from_document, record_to_document

logger = logging.getLogger(__name__)

FILE_PREFIX = "users-"
FILE_SUFFIX = ".json"
_UNSAFE_TENANT_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def tenant_file_name(tenant: str) -> str:
    """Return the file name holding the users of ``tenant``."""

    safe_tenant = _UNSAFE_TENANT_CHARS.sub("_", tenant)
    return f"{FILE_PREFIX}{safe_tenant}{FILE_SUFFIX}"


class FileActivityBackend(ActivityBackend):
    """Keep every tenant's users in ``<data_dir>/users-<tenant>.json``.

    Writes rewrite the whole tenant file. They are serialized per file and
    land atomically through a temporary file, so concurrent writers in this
    process cannot drop each other's updates and readers never observe a
    half-written document.
    """

    storage_type = STORAGE_FILE

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)
        self._file_locks = KeyedLocks()
        self._skipped_lock = threading.Lock()
        self.skipped_documents = 0

    def record_activity(self, event: ActivityEvent) -> None:
        tenant = event.tenant or DEFAULT_TENANT
        path = self._path_for(tenant)
        user_id = make_user_id(tenant, event.user_email)

        with self._file_locks.get(path.name):
            documents = self._load_for_update(path)
            index, record = self._find_record(documents, user_id, path)
            if record is None:
                record = UserRecord.from_event(event, tenant)
            record.apply(event)

            document = record_to_document(record)
            if index is None:
                documents.append(document)
            else:
                documents[index] = document
            self._write_documents(path, documents)

    def get_all_users(self, tenant: str | None = None) -> list[UserRecord]:
        if tenant is not None:
            paths = [self._path_for(tenant)]
        else:
            paths = sorted(self.data_dir.glob(f"{FILE_PREFIX}*{FILE_SUFFIX}"))

        records: list[UserRecord] = []
        for path in paths:
            records.extend(self._load_records(path))

        if tenant is not None:
            # Distinct tenants can sanitize to the same file name.
            records = [record for record in records if record.tenant == tenant]
        return sort_by_recent_activity(records)

    def get_user_by_email(self, tenant: str, email: str) -> UserRecord | None:
        user_id = make_user_id(tenant, email)
        for record in self._load_records(self._path_for(tenant)):
            if record.id == user_id:
                return record
        return None

    def delete_user(self, tenant: str, email: str) -> None:
        path = self._path_for(tenant)
        user_id = make_user_id(tenant, email)

        with self._file_locks.get(path.name):
            try:
                documents = self._read_documents(path)
            except FileNotFoundError:
                return
            except ValueError as exc:
                self._count_skip("Not deleting %s from unreadable file %s: %s", user_id, path, exc)
                return
            except OSError as exc:
                raise BackendUnavailable(f"Could not read {path}") from exc

            remaining = [
                document
                for document in documents
                if not (isinstance(document, dict) and document.get("id") == user_id)
            ]
            if len(remaining) != len(documents):
                self._write_documents(path, remaining)

    def _path_for(self, tenant: str) -> Path:
        return self.data_dir / tenant_file_name(tenant)

    @staticmethod
    def _read_documents(path: Path) -> list[Any]:
        with path.open(encoding="utf-8") as handle:
            documents = json.load(handle)
        if not isinstance(documents, list):
            raise MalformedDocumentError(f"{path.name} does not contain a JSON array")
        return documents

    def _load_records(self, path: Path) -> list[UserRecord]:
        try:
            documents = self._read_documents(path)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as exc:
            self._count_skip("Skipping unreadable tenant file %s: %s", path, exc)
            return []

        records: list[UserRecord] = []
        for document in documents:
            try:
                records.append(record_from_document(document))
            except MalformedDocumentError as exc:
                self._count_skip("Skipping malformed user in %s: %s", path, exc)
        return records

    def _load_for_update(self, path: Path) -> list[Any]:
        try:
            return self._read_documents(path)
        except FileNotFoundError:
            return []
        except ValueError as exc:
            self._count_skip("Tenant file %s is corrupt and will be replaced: %s", path, exc)
            self._set_aside(path)
            return []
        except OSError as exc:
            raise BackendUnavailable(f"Could not read {path}") from exc

    def _find_record(
        self, documents: list[Any], user_id: str, path: Path
    ) -> tuple[int | None, UserRecord | None]:
        for index, document in enumerate(documents):
            if not isinstance(document, dict) or document.get("id") != user_id:
                continue
            try:
                return index, record_from_document(document)
            except MalformedDocumentError as exc:
                self._count_skip("Replacing malformed user %s in %s: %s", user_id, path, exc)
                return index, None
        return None, None

    def _set_aside(self, path: Path) -> None:
        aside = path.with_name(f"{path.name}.corrupt-{utc_now():%Y%m%dT%H%M%S%fZ}")
        try:
            os.replace(path, aside)
        except OSError as exc:
            raise BackendUnavailable(f"Could not move corrupt file {path} aside") from exc
        logger.warning("Moved corrupt tenant file %s to %s", path, aside)

    def _write_documents(self, path: Path, documents: list[Any]) -> None:
        temp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_name = handle.name
                json.dump(documents, handle, indent=2)
            os.replace(temp_name, path)
        except OSError as exc:
            if temp_name is not None and os.path.exists(temp_name):
                os.unlink(temp_name)
            raise BackendUnavailable(f"Could not write {path}") from exc

    def _count_skip(self, message: str, *args: object) -> None:
        with self._skipped_lock:
            self.skipped_documents += 1
        logger.warning(message, *args)


__all__ = ["FileActivityBackend", "tenant_file_name"]
