"""CosmosRepository provides generic CRUD operations over one Cosmos DB container.

A concrete repository binds the base to an entity model, a container name and
a partition key path. The container is provisioned by initialize(), which the
application awaits once at startup before serving requests.
"""

import logging
import uuid
from typing import Any, ClassVar, Generic, TypeVar

from azure.cosmos.aio import ContainerProxy
from azure.cosmos.exceptions import (
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)
from pydantic import BaseModel

from service.database.cosmos_entity import BaseEntity, utc_now
from service.database.cosmos_storage_client import CosmosStorageClient
from service.errors import ConflictError, NotFoundError, StoreError

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=BaseEntity)

PARTITION_QUERY = "SELECT * FROM c WHERE c.partitionKey = @partitionKey"
COUNT_QUERY = "SELECT VALUE COUNT(1) FROM c WHERE c.partitionKey = @partitionKey"


class EntityPage(BaseModel, Generic[EntityT]):
    """A single page of query results.

    continuation_token is None when there are no further pages.
    """

    items: list[EntityT]
    continuation_token: str | None = None


def to_query_parameters(parameters: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Render a name/value mapping as Cosmos query parameters (@name)."""
    if not parameters:
        return []
    return [{"name": f"@{name}", "value": value} for name, value in parameters.items()]


class CosmosRepository(Generic[EntityT]):
    """Repository for one Cosmos DB container holding a single entity type.

    Args:
        storage_client (CosmosStorageClient): Opened storage client.
        entity_type (type[EntityT]): Model used to parse stored documents.

    """

    container_name: ClassVar[str]
    partition_key_path: ClassVar[str]
    throughput: int | None = None

    def __init__(
        self, storage_client: CosmosStorageClient, entity_type: type[EntityT]
    ) -> None:
        self.storage_client = storage_client
        self.entity_type = entity_type
        self._container: ContainerProxy | None = None

    async def initialize(self) -> None:
        """Create the container if it does not exist and keep its handle."""
        self._container = await self.storage_client.get_or_create_container(
            self.container_name,
            self.partition_key_path,
            self.throughput,
        )

    @property
    def container(self) -> ContainerProxy:
        """The container handle; only available after initialize()."""
        if self._container is None:
            raise StoreError(f"Repository for '{self.container_name}' is not initialized")
        return self._container

    def _to_entity(self, document: dict) -> EntityT:
        return self.entity_type.model_validate(document)

    async def _collect(
        self, query: str, parameters: dict[str, Any] | None = None
    ) -> list[EntityT]:
        """Run a query and drain every page into a list."""
        try:
            items = self.container.query_items(
                query=query, parameters=to_query_parameters(parameters)
            )
            return [self._to_entity(item) async for item in items]
        except CosmosHttpResponseError as e:
            raise StoreError(f"Query failed on '{self.container_name}'") from e

    async def _read(self, item_id: str, partition_key: str) -> dict | None:
        try:
            return await self.container.read_item(
                item=item_id, partition_key=partition_key
            )
        except CosmosResourceNotFoundError:
            return None
        except CosmosHttpResponseError as e:
            raise StoreError(
                f"Failed to read item {item_id} from '{self.container_name}'"
            ) from e

    async def get_by_id(self, item_id: str, partition_key: str) -> EntityT | None:
        """Read an entity by id, returning None when it does not exist."""
        document = await self._read(item_id, partition_key)
        return self._to_entity(document) if document is not None else None

    async def list_all(self, partition_key: str) -> list[EntityT]:
        """Return every entity stored in one partition."""
        return await self._collect(PARTITION_QUERY, {"partitionKey": partition_key})

    async def create(self, entity: EntityT) -> EntityT:
        """Insert a new entity, stamping its creation and update times.

        Raises:
            ConflictError: If an entity with the same id already exists.

        """
        now = utc_now()
        entity.created_at = now
        entity.updated_at = now
        try:
            created = await self.container.create_item(body=entity.to_document())
        except CosmosResourceExistsError as e:
            raise ConflictError(
                f"Item with id {entity.id} already exists in '{self.container_name}'"
            ) from e
        except CosmosHttpResponseError as e:
            raise StoreError(f"Failed to create item in '{self.container_name}'") from e
        logger.debug("Created item %s in %s", entity.id, self.container_name)
        return self._to_entity(created)

    async def update(self, entity: EntityT) -> EntityT:
        """Replace an existing entity.

        The stored etag is not checked, so concurrent updates are last-writer-wins.

        Raises:
            NotFoundError: If no entity with this id exists.

        """
        entity.updated_at = utc_now()
        try:
            replaced = await self.container.replace_item(
                item=entity.id, body=entity.to_document()
            )
        except CosmosResourceNotFoundError as e:
            raise NotFoundError(
                f"Item with id {entity.id} not found in '{self.container_name}'"
            ) from e
        except CosmosHttpResponseError as e:
            raise StoreError(
                f"Failed to update item {entity.id} in '{self.container_name}'"
            ) from e
        return self._to_entity(replaced)

    async def upsert(self, entity: EntityT) -> EntityT:
        """Insert the entity or overwrite the existing one with the same id."""
        now = utc_now()
        entity.updated_at = now
        if not entity.id:
            entity.id = str(uuid.uuid4())
            entity.created_at = now
        try:
            upserted = await self.container.upsert_item(body=entity.to_document())
        except CosmosHttpResponseError as e:
            raise StoreError(
                f"Failed to upsert item {entity.id} in '{self.container_name}'"
            ) from e
        return self._to_entity(upserted)

    async def delete(self, item_id: str, partition_key: str) -> None:
        """Delete an entity by id.

        Raises:
            NotFoundError: If no entity with this id exists.

        """
        try:
            await self.container.delete_item(item=item_id, partition_key=partition_key)
        except CosmosResourceNotFoundError as e:
            raise NotFoundError(
                f"Item with id {item_id} not found in '{self.container_name}'"
            ) from e
        except CosmosHttpResponseError as e:
            raise StoreError(
                f"Failed to delete item {item_id} from '{self.container_name}'"
            ) from e
        logger.debug("Deleted item %s from %s", item_id, self.container_name)

    async def exists(self, item_id: str, partition_key: str) -> bool:
        """Check whether an entity with this id exists."""
        return await self._read(item_id, partition_key) is not None

    async def count(self, partition_key: str) -> int:
        """Count the entities stored in one partition."""
        try:
            results = self.container.query_items(
                query=COUNT_QUERY,
                parameters=to_query_parameters({"partitionKey": partition_key}),
            )
            async for value in results:
                return int(value)
        except CosmosHttpResponseError as e:
            raise StoreError(f"Count failed on '{self.container_name}'") from e
        return 0

    async def list_paged(
        self,
        partition_key: str,
        page_size: int = 10,
        continuation_token: str | None = None,
    ) -> EntityPage[EntityT]:
        """Return a single page of entities from one partition.

        Args:
            partition_key (str): Partition to read.
            page_size (int): Maximum number of entities in the page.
            continuation_token (str | None): Token from a previous page, or None
                to start from the beginning.

        Returns:
            EntityPage: The page; its continuation_token is None on the last page.

        """
        try:
            pages = self.container.query_items(
                query=PARTITION_QUERY,
                parameters=to_query_parameters({"partitionKey": partition_key}),
                max_item_count=page_size,
            ).by_page(continuation_token)
            page = await anext(pages, None)
            if page is None:
                return EntityPage(items=[])
            items = [self._to_entity(item) async for item in page]
        except CosmosHttpResponseError as e:
            raise StoreError(f"Paged query failed on '{self.container_name}'") from e
        return EntityPage(items=items, continuation_token=pages.continuation_token)

    async def query(
        self, query_text: str, parameters: dict[str, Any] | None = None
    ) -> list[EntityT]:
        """Run a parameterized query against the whole container.

        The query is not scoped to a partition; include a partitionKey filter in
        query_text when needed.

        Args:
            query_text (str): Cosmos SQL query, e.g. "SELECT * FROM c WHERE c.email = @email".
            parameters (dict | None): Parameter values keyed by name without the "@".

        """
        return await self._collect(query_text, parameters)
