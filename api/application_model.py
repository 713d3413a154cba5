"""Application model definitions."""

from dataclasses import dataclass

from fastapi import Request

from service.database.cosmos_storage_client import CosmosStorageClient
from service.users.users_service import UsersService


@dataclass
class AppState:
    """Application state holding the storage client and services."""

    storage_client: CosmosStorageClient
    users_service: UsersService


def get_services(request: Request) -> AppState:
    """Dependency to get application services from request."""
    return request.app.state.services
