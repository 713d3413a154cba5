"""Business rules for managing users."""

import logging

from service.errors import ConflictError, NotFoundError, ValidationError
from service.users.user_model import (
    UserDto,
    to_dto,
    to_dtos,
    to_entity,
    update_entity,
)
from service.users.users_repository import UsersRepository

logger = logging.getLogger(__name__)


class UsersService:
    """Validate user requests and map between DTOs and stored entities."""

    def __init__(self, repo: UsersRepository) -> None:
        self.repo = repo

    async def list_all(self) -> list[UserDto]:
        """Return every user."""
        try:
            logger.info("Getting all users")
            return to_dtos(await self.repo.list_all())
        except Exception as e:
            logger.error("Error getting all users: %s", e)
            raise

    async def get_by_id(self, user_id: str) -> UserDto | None:
        """Return the user with this id, or None if there is none."""
        if not user_id:
            logger.warning("get_by_id called with empty id")
            return None
        try:
            logger.info("Getting user by id: %s", user_id)
            user = await self.repo.get_by_id(user_id)
            return to_dto(user) if user else None
        except Exception as e:
            logger.error("Error getting user by id %s: %s", user_id, e)
            raise

    async def create(self, dto: UserDto | None) -> UserDto:
        """Create a user.

        Args:
            dto (UserDto | None): Data of the new user.

        Returns:
            UserDto: The stored user.

        Raises:
            ValidationError: If the data, the email or the first name is missing.
            ConflictError: If another user already has this email.

        """
        try:
            if dto is None:
                raise ValidationError("User data is required")
            if not dto.email:
                raise ValidationError("Email is required")
            if not dto.first_name:
                raise ValidationError("FirstName is required")

            if await self.repo.get_by_email(dto.email) is not None:
                raise ConflictError(f"User with email {dto.email} already exists")

            logger.info("Creating new user with email: %s", dto.email)
            created = await self.repo.create(to_entity(dto))
            return to_dto(created)
        except Exception as e:
            logger.error("Error creating user: %s", e)
            raise

    async def update(self, user_id: str, dto: UserDto | None) -> UserDto:
        """Update an existing user.

        Raises:
            ValidationError: If the data or the id is missing.
            NotFoundError: If no user has this id.
            ConflictError: If the new email belongs to another user.

        """
        try:
            if dto is None:
                raise ValidationError("User data is required")
            if not user_id:
                raise ValidationError("Id is required for update")

            existing = await self.repo.get_by_id(user_id)
            if existing is None:
                raise NotFoundError(f"User with id {user_id} not found")

            if existing.email.lower() != dto.email.lower():
                owner = await self.repo.get_by_email(dto.email)
                if owner is not None and owner.id != user_id:
                    raise ConflictError(
                        f"Another user with email {dto.email} already exists"
                    )

            logger.info("Updating user with id: %s", user_id)
            updated = await self.repo.update(update_entity(dto, existing))
            return to_dto(updated)
        except Exception as e:
            logger.error("Error updating user with id %s: %s", user_id, e)
            raise

    async def delete(self, user_id: str) -> None:
        """Delete a user.

        Raises:
            ValidationError: If the id is empty.
            NotFoundError: If no user has this id.

        """
        try:
            if not user_id:
                raise ValidationError("Id is required for delete")
            if await self.repo.get_by_id(user_id) is None:
                raise NotFoundError(f"User with id {user_id} not found")

            logger.info("Deleting user with id: %s", user_id)
            await self.repo.delete(user_id)
        except Exception as e:
            logger.error("Error deleting user with id %s: %s", user_id, e)
            raise

    async def get_by_email(self, email: str) -> UserDto | None:
        """Return the user owning this email, or None if there is none."""
        if not email:
            logger.warning("get_by_email called with empty email")
            return None
        try:
            logger.info("Getting user by email: %s", email)
            user = await self.repo.get_by_email(email)
            return to_dto(user) if user else None
        except Exception as e:
            logger.error("Error getting user by email %s: %s", email, e)
            raise

    async def list_active(self) -> list[UserDto]:
        """Return all active users."""
        try:
            logger.info("Getting active users")
            return to_dtos(await self.repo.list_active())
        except Exception as e:
            logger.error("Error getting active users: %s", e)
            raise
