"""Tests for CosmosRepository against a mocked container."""

import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.cosmos.exceptions import (
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from service.database.cosmos_repository import (
    COUNT_QUERY,
    PARTITION_QUERY,
    CosmosRepository,
    to_query_parameters,
)
from service.errors import ConflictError, NotFoundError, StoreError
from service.users.user_model import User
from tests.cosmos_fakes import FakeItemPaged


class _UserRepository(CosmosRepository[User]):
    container_name = "people"
    partition_key_path = "/partitionKey"
    throughput = 400


def _document(**overrides) -> dict:
    defaults = {
        "id": "user-1",
        "_etag": '"etag-1"',
        "createdAt": "2024-01-01T00:00:00+00:00",
        "updatedAt": "2024-01-01T00:00:00+00:00",
        "partitionKey": "users",
        "firstName": "John",
        "lastName": "Doe",
        "email": "john@example.com",
        "isActive": True,
    }
    defaults.update(overrides)
    return defaults


def _echo(**kwargs):
    return kwargs["body"]


def _repository(container=None) -> tuple[_UserRepository, MagicMock]:
    container = container or MagicMock()
    storage_client = MagicMock()
    storage_client.get_or_create_container = AsyncMock(return_value=container)
    repo = _UserRepository(storage_client, User)
    asyncio.run(repo.initialize())
    return repo, container


def _not_found() -> CosmosResourceNotFoundError:
    return CosmosResourceNotFoundError(status_code=404, message="Not found")


# --- provisioning ---

def test_initialize_provisions_container_from_class_settings():
    repo, container = _repository()
    repo.storage_client.get_or_create_container.assert_awaited_once_with(
        "people", "/partitionKey", 400
    )
    assert repo.container is container


def test_operations_before_initialize_raise_store_error():
    repo = _UserRepository(MagicMock(), User)
    with pytest.raises(StoreError, match="not initialized"):
        asyncio.run(repo.get_by_id("user-1", "users"))


def test_to_query_parameters_prefixes_names():
    assert to_query_parameters({"email": "a@b.c", "isActive": True}) == [
        {"name": "@email", "value": "a@b.c"},
        {"name": "@isActive", "value": True},
    ]
    assert to_query_parameters(None) == []


# --- point reads ---

def test_get_by_id_returns_entity():
    repo, container = _repository()
    container.read_item = AsyncMock(return_value=_document())

    user = asyncio.run(repo.get_by_id("user-1", "users"))

    container.read_item.assert_awaited_once_with(item="user-1", partition_key="users")
    assert user.first_name == "John"
    assert user.etag == '"etag-1"'


def test_get_by_id_returns_none_when_not_found():
    repo, container = _repository()
    container.read_item = AsyncMock(side_effect=_not_found())
    assert asyncio.run(repo.get_by_id("missing", "users")) is None


def test_get_by_id_wraps_other_store_errors():
    repo, container = _repository()
    container.read_item = AsyncMock(
        side_effect=CosmosHttpResponseError(status_code=503, message="Unavailable")
    )
    with pytest.raises(StoreError):
        asyncio.run(repo.get_by_id("user-1", "users"))


def test_exists_translates_read_result():
    repo, container = _repository()
    container.read_item = AsyncMock(return_value=_document())
    assert asyncio.run(repo.exists("user-1", "users")) is True

    container.read_item = AsyncMock(side_effect=_not_found())
    assert asyncio.run(repo.exists("user-1", "users")) is False


# --- writes ---

def test_create_stamps_timestamps_and_inserts():
    repo, container = _repository()
    container.create_item = AsyncMock(side_effect=_echo)
    user = User(first_name="John", email="john@example.com",
                created_at=datetime(2000, 1, 1, tzinfo=UTC))

    created = asyncio.run(repo.create(user))

    body = container.create_item.await_args.kwargs["body"]
    assert body["partitionKey"] == "users"
    assert body["id"] == user.id
    assert created.created_at.year > 2000
    assert created.created_at == created.updated_at


def test_create_raises_conflict_on_duplicate_id():
    repo, container = _repository()
    container.create_item = AsyncMock(
        side_effect=CosmosResourceExistsError(status_code=409, message="Conflict")
    )
    with pytest.raises(ConflictError, match="user-1"):
        asyncio.run(repo.create(User(id="user-1")))


def test_update_refreshes_updated_at_and_keeps_created_at():
    repo, container = _repository()
    container.replace_item = AsyncMock(side_effect=_echo)
    created_at = datetime(2024, 1, 1, tzinfo=UTC)
    user = User(id="user-1", created_at=created_at, updated_at=created_at)

    updated = asyncio.run(repo.update(user))

    assert container.replace_item.await_args.kwargs["item"] == "user-1"
    assert updated.created_at == created_at
    assert updated.updated_at > created_at


def test_update_raises_not_found_for_missing_entity():
    repo, container = _repository()
    container.replace_item = AsyncMock(side_effect=_not_found())
    with pytest.raises(NotFoundError, match="missing"):
        asyncio.run(repo.update(User(id="missing")))


def test_upsert_generates_id_when_empty():
    repo, container = _repository()
    container.upsert_item = AsyncMock(side_effect=_echo)
    user = User(id="", created_at=datetime(2000, 1, 1, tzinfo=UTC))

    upserted = asyncio.run(repo.upsert(user))

    assert upserted.id
    assert upserted.created_at.year > 2000


def test_upsert_keeps_existing_id_and_created_at():
    repo, container = _repository()
    container.upsert_item = AsyncMock(side_effect=_echo)
    created_at = datetime(2024, 1, 1, tzinfo=UTC)

    upserted = asyncio.run(repo.upsert(User(id="user-1", created_at=created_at)))

    assert upserted.id == "user-1"
    assert upserted.created_at == created_at


def test_delete_removes_item():
    repo, container = _repository()
    container.delete_item = AsyncMock(return_value=None)
    asyncio.run(repo.delete("user-1", "users"))
    container.delete_item.assert_awaited_once_with(item="user-1", partition_key="users")


def test_delete_raises_not_found_for_missing_item():
    repo, container = _repository()
    container.delete_item = AsyncMock(side_effect=_not_found())
    with pytest.raises(NotFoundError):
        asyncio.run(repo.delete("missing", "users"))


# --- queries ---

def test_list_all_drains_every_page():
    repo, container = _repository()
    container.query_items = MagicMock(
        return_value=FakeItemPaged([[_document(id="a")], [_document(id="b"), _document(id="c")]])
    )

    users = asyncio.run(repo.list_all("users"))

    assert [u.id for u in users] == ["a", "b", "c"]
    kwargs = container.query_items.call_args.kwargs
    assert kwargs["query"] == PARTITION_QUERY
    assert kwargs["parameters"] == [{"name": "@partitionKey", "value": "users"}]


def test_count_returns_aggregate_value():
    repo, container = _repository()
    container.query_items = MagicMock(return_value=FakeItemPaged([[3]]))
    assert asyncio.run(repo.count("users")) == 3
    assert container.query_items.call_args.kwargs["query"] == COUNT_QUERY


def test_count_returns_zero_without_results():
    repo, container = _repository()
    container.query_items = MagicMock(return_value=FakeItemPaged([]))
    assert asyncio.run(repo.count("users")) == 0


def test_list_paged_returns_one_page_with_token():
    repo, container = _repository()
    paged = FakeItemPaged([[_document(id="a"), _document(id="b")], [_document(id="c")]], "next")
    container.query_items = MagicMock(return_value=paged)

    page = asyncio.run(repo.list_paged("users", page_size=2, continuation_token="start"))

    assert [u.id for u in page.items] == ["a", "b"]
    assert page.continuation_token == "next"
    assert paged.requested_token == "start"
    assert container.query_items.call_args.kwargs["max_item_count"] == 2


def test_list_paged_signals_end_without_token():
    repo, container = _repository()
    container.query_items = MagicMock(return_value=FakeItemPaged([]))

    page = asyncio.run(repo.list_paged("users"))

    assert page.items == []
    assert page.continuation_token is None


def test_query_passes_named_parameters():
    repo, container = _repository()
    container.query_items = MagicMock(return_value=FakeItemPaged([[_document()]]))

    users = asyncio.run(
        repo.query("SELECT * FROM c WHERE c.firstName = @firstName", {"firstName": "John"})
    )

    assert len(users) == 1
    assert container.query_items.call_args.kwargs["parameters"] == [
        {"name": "@firstName", "value": "John"}
    ]


def test_query_wraps_store_errors():
    repo, container = _repository()
    container.query_items = MagicMock(
        side_effect=CosmosHttpResponseError(status_code=400, message="Bad query")
    )
    with pytest.raises(StoreError):
        asyncio.run(repo.query("SELECT nonsense"))
