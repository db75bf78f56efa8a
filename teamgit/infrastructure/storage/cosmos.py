"""Azure Cosmos DB connection handle shared by the document backend."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from azure.core.exceptions import AzureError
from azure.cosmos import ContainerProxy, CosmosClient, PartitionKey

from teamgit.config import Settings
from teamgit.domain.exceptions import BackendUnavailable, ConfigurationError

logger = logging.getLogger(__name__)

PARTITION_KEY_PATH = "/userEmail"


class CosmosContainerProvider:
    """Lazily create and cache the Cosmos DB container used for user rows.

    The first call to :meth:`get_container` creates the database and the
    container if they do not exist yet. That step runs under a lock, so callers
    racing on first use share one initialization. A failed initialization is
    not cached and the next call tries again.
    """

    def __init__(
        self,
        *,
        endpoint: str | None,
        key: str | None,
        database_name: str,
        container_name: str,
        client_factory: Callable[..., Any] = CosmosClient,
    ) -> None:
        self._endpoint = endpoint
        self._key = key
        self._database_name = database_name
        self._container_name = container_name
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._container: ContainerProxy | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CosmosContainerProvider":
        return cls(
            endpoint=settings.cosmos_endpoint,
            key=settings.cosmos_key,
            database_name=settings.cosmos_database,
            container_name=settings.cosmos_container,
        )

    def is_configured(self) -> bool:
        return bool(self._endpoint and self._key)

    @property
    def initialized(self) -> bool:
        return self._container is not None

    def get_container(self) -> ContainerProxy:
        """Return the container, creating the database resources on first use."""

        container = self._container
        if container is not None:
            return container

        with self._lock:
            if self._container is None:
                self._container = self._initialize()
            return self._container

    def _initialize(self) -> ContainerProxy:
        if not self.is_configured():
            raise ConfigurationError(
                "Cosmos DB not configured. Set COSMOS_ENDPOINT and COSMOS_KEY environment variables."
            )

        try:
            client = self._client_factory(self._endpoint, credential=self._key)
            database = client.create_database_if_not_exists(id=self._database_name)
            container = database.create_container_if_not_exists(
                id=self._container_name,
                partition_key=PartitionKey(path=PARTITION_KEY_PATH),
            )
        except AzureError as exc:
            raise BackendUnavailable("Could not connect to Cosmos DB") from exc

        logger.info(
            "Connected to Cosmos DB container %s/%s",
            self._database_name,
            self._container_name,
        )
        return container


__all__ = ["CosmosContainerProvider", "PARTITION_KEY_PATH"]
