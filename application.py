"""FastAPI application exposing CRUD operations on users."""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.application_model import AppState
from api.users_api_router import invalid_user_data_message
from api.users_api_router import router as users_router
from service.database.cosmos_storage_client import (
    CosmosConfiguration,
    CosmosStorageClient,
)
from service.users.users_repository import UsersRepository
from service.users.users_service import UsersService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


def load_configuration() -> CosmosConfiguration:
    """Read the Cosmos DB settings from the environment."""
    return CosmosConfiguration(
        connection_string=os.getenv("AZURE_NOSQL_CONNECTION_STRING", ""),
        database_name=os.getenv("DB_NAME", "UsersDb"),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""

    # Startup: open the database and provision containers before serving
    storage_client = CosmosStorageClient(load_configuration())
    try:
        await storage_client.open()
        throughput = os.getenv("USERS_CONTAINER_THROUGHPUT")
        users_repo = UsersRepository(
            storage_client, throughput=int(throughput) if throughput else None
        )
        await users_repo.initialize()
        app.state.services = AppState(
            storage_client=storage_client,
            users_service=UsersService(users_repo),
        )
        logger.info("✓ Connected to database %s", storage_client.database_name)
    except Exception as e:
        logger.error(f"✗ Failed to initialize storage: {e}")
        await storage_client.close()
        raise

    yield

    # Shutdown: close the database connection
    await storage_client.close()
    logger.info("✓ Disconnected from database")


app = FastAPI(
    title="Users API",
    description="CRUD API for users stored in Azure Cosmos DB",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(users_router)


@app.exception_handler(RequestValidationError)
async def invalid_request_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Reject malformed request bodies with 400 instead of 422."""
    errors = exc.errors()
    logger.warning("Invalid request to %s: %s", request.url.path, errors)
    return JSONResponse(
        status_code=400, content={"detail": invalid_user_data_message(errors)}
    )


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    services: AppState | None = getattr(request.app.state, "services", None)
    connected = services is not None and services.storage_client.is_open
    return {
        "status": "healthy",
        "database": "connected" if connected else "disconnected",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
