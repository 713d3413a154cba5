"""Base model for documents stored in Cosmos DB."""

import uuid
from datetime import UTC, datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(tz=UTC)


class BaseEntity(BaseModel):
    """A record persisted in a Cosmos DB container.

    Subclasses set PARTITION_KEY; every instance of a subclass lives in that
    single partition.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    PARTITION_KEY: ClassVar[str]

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    etag: str | None = Field(default=None, alias="_etag")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @computed_field(alias="partitionKey")
    @property
    def partition_key(self) -> str:
        """Partition key value, fixed per entity type."""
        return type(self).PARTITION_KEY

    def to_document(self) -> dict:
        """Serialize the entity into the JSON document stored in Cosmos DB."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
