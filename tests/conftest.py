from __future__ import annotations

import copy
import uuid

import pytest
from fastapi.testclient import TestClient

from api.application_model import AppState, get_services
from application import app
from service.errors import ConflictError, NotFoundError
from service.users.user_model import User
from service.users.users_service import UsersService


class InMemoryUsersRepository:
    """UsersRepository replacement keeping documents in a dict."""

    def __init__(self) -> None:
        self.documents: dict[str, dict] = {}

    async def get_by_id(self, user_id: str) -> User | None:
        document = self.documents.get(user_id)
        return User.model_validate(document) if document else None

    async def list_all(self) -> list[User]:
        return [User.model_validate(d) for d in self.documents.values()]

    async def create(self, user: User) -> User:
        if user.id in self.documents:
            raise ConflictError(f"Item with id {user.id} already exists")
        document = user.to_document()
        document["_etag"] = str(uuid.uuid4())
        self.documents[user.id] = document
        return User.model_validate(copy.deepcopy(document))

    async def update(self, user: User) -> User:
        if user.id not in self.documents:
            raise NotFoundError(f"Item with id {user.id} not found")
        self.documents[user.id] = user.to_document()
        return User.model_validate(copy.deepcopy(self.documents[user.id]))

    async def delete(self, user_id: str) -> None:
        if self.documents.pop(user_id, None) is None:
            raise NotFoundError(f"Item with id {user_id} not found")

    async def get_by_email(self, email: str) -> User | None:
        for document in self.documents.values():
            if document["email"].lower() == email.lower():
                return User.model_validate(document)
        return None

    async def list_active(self) -> list[User]:
        return [
            User.model_validate(d) for d in self.documents.values() if d["isActive"]
        ]


@pytest.fixture()
def users_repo() -> InMemoryUsersRepository:
    return InMemoryUsersRepository()


@pytest.fixture()
def client(users_repo: InMemoryUsersRepository):
    state = AppState(storage_client=None, users_service=UsersService(users_repo))
    app.dependency_overrides[get_services] = lambda: state
    # Not used as a context manager so the Cosmos lifespan never runs.
    yield TestClient(app)
    app.dependency_overrides.clear()
