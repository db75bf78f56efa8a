"""Storage backends for user activity."""

from __future__ import annotations

from teamgit.config import STORAGE_DOCUMENT, Settings

from .base import ActivityBackend
from .cosmos import CosmosContainerProvider
from .document_backend import DocumentActivityBackend
from .file_backend import FileActivityBackend, tenant_file_name


def create_backend(settings: Settings) -> ActivityBackend:
    """Return the backend selected by ``settings.storage_type``."""

    if settings.storage_type == STORAGE_DOCUMENT:
        return DocumentActivityBackend(CosmosContainerProvider.from_settings(settings))
    return FileActivityBackend(settings.data_dir)


__all__ = [
    "ActivityBackend",
    "CosmosContainerProvider",
    "DocumentActivityBackend",
    "FileActivityBackend",
    "create_backend",
    "tenant_file_name",
]
