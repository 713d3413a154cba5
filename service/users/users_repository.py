"""Repository for User documents in the users container."""

from service.database.cosmos_repository import CosmosRepository
from service.database.cosmos_storage_client import CosmosStorageClient
from service.users.user_model import USERS_PARTITION_KEY, User

EMAIL_QUERY = (
    "SELECT * FROM c WHERE STRINGEQUALS(c.email, @email, true) "
    "AND c.partitionKey = @partitionKey"
)
ACTIVE_QUERY = (
    "SELECT * FROM c WHERE c.isActive = @isActive AND c.partitionKey = @partitionKey"
)


class UsersRepository(CosmosRepository[User]):
    """Users stored in a single "users" partition."""

    container_name = "users"
    partition_key_path = "/partitionKey"

    def __init__(
        self, storage_client: CosmosStorageClient, throughput: int | None = None
    ) -> None:
        super().__init__(storage_client, User)
        if throughput is not None:
            self.throughput = throughput

    async def get_by_id(self, user_id: str) -> User | None:
        return await super().get_by_id(user_id, USERS_PARTITION_KEY)

    async def list_all(self) -> list[User]:
        return await super().list_all(USERS_PARTITION_KEY)

    async def delete(self, user_id: str) -> None:
        await super().delete(user_id, USERS_PARTITION_KEY)

    async def get_by_email(self, email: str) -> User | None:
        """Find the user owning an email address, ignoring case."""
        users = await self.query(
            EMAIL_QUERY, {"email": email, "partitionKey": USERS_PARTITION_KEY}
        )
        return users[0] if users else None

    async def list_active(self) -> list[User]:
        """Return all users whose isActive flag is set."""
        return await self.query(
            ACTIVE_QUERY, {"isActive": True, "partitionKey": USERS_PARTITION_KEY}
        )
