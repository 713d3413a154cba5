"""CosmosStorageClient owns the connection to an Azure Cosmos DB database.

The client is created once at application startup and shared by every
repository. Opening it creates the database if it does not exist yet, and
repositories use it to provision their containers.
"""

import logging

from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient, DatabaseProxy
from azure.cosmos.exceptions import CosmosHttpResponseError
from pydantic import BaseModel

from service.errors import ConfigurationError, StoreError

logger = logging.getLogger(__name__)


class CosmosConfiguration(BaseModel):
    """Configuration for CosmosStorageClient."""

    connection_string: str
    database_name: str


class CosmosStorageClient:
    """Process-wide handle to a Cosmos DB database.

    Args:
        config (CosmosConfiguration): Connection string and database name.

    """

    def __init__(self, config: CosmosConfiguration) -> None:
        self.config = config
        self.client: CosmosClient | None = None
        self.database: DatabaseProxy | None = None

    @property
    def database_name(self) -> str:
        """Name of the logical database this client works with."""
        return self.config.database_name

    @property
    def is_open(self) -> bool:
        """Whether open() completed and the database handle is held."""
        return self.database is not None

    async def open(self) -> None:
        """Connect to Cosmos DB and create the database if it is missing.

        Raises:
            ConfigurationError: If the connection string or database name is empty.
            StoreError: If the database cannot be created or accessed.

        """
        if self.is_open:
            return
        if not self.config.connection_string:
            raise ConfigurationError("Connection string cannot be empty")
        if not self.config.database_name:
            raise ConfigurationError("Database name cannot be empty")

        self.client = CosmosClient.from_connection_string(self.config.connection_string)
        try:
            self.database = await self.client.create_database_if_not_exists(
                id=self.config.database_name
            )
        except CosmosHttpResponseError as e:
            await self.close()
            raise StoreError(
                f"Failed to create/access database '{self.config.database_name}'"
            ) from e
        logger.info("Using Cosmos database '%s'", self.config.database_name)

    async def get_or_create_container(
        self,
        container_name: str,
        partition_key_path: str,
        throughput: int | None = None,
    ) -> ContainerProxy:
        """Get a container, creating it if it does not exist.

        Args:
            container_name (str): The name of the container.
            partition_key_path (str): Partition key path, e.g. "/partitionKey".
            throughput (int | None): Optional provisioned throughput (RU/s).

        Returns:
            ContainerProxy: Handle to the container.

        """
        if self.database is None:
            raise StoreError("Storage client is not open")

        try:
            container = await self.database.create_container_if_not_exists(
                id=container_name,
                partition_key=PartitionKey(path=partition_key_path),
                offer_throughput=throughput,
            )
        except CosmosHttpResponseError as e:
            raise StoreError(
                f"Failed to create/access container '{container_name}'"
            ) from e
        logger.info(
            "Container '%s' ready with partition key '%s'",
            container_name,
            partition_key_path,
        )
        return container

    async def close(self) -> None:
        """Close the connection to Cosmos DB."""
        if self.client is not None:
            await self.client.close()
        self.client = None
        self.database = None
