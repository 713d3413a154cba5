"""User entity, its external DTO and the mappings between them."""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from service.database.cosmos_entity import BaseEntity

USERS_PARTITION_KEY = "users"

# Messages for request validation failures, keyed by (property, error type).
DTO_ERROR_MESSAGES = {
    ("firstName", "string_too_long"): "First name cannot exceed 50 characters",
    ("lastName", "string_too_long"): "Last name cannot exceed 50 characters",
    ("email", "string_too_long"): "Email cannot exceed 100 characters",
    ("email", "invalid_email"): "Invalid email format",
}


class User(BaseEntity):
    """User document stored in the users container."""

    PARTITION_KEY: ClassVar[str] = USERS_PARTITION_KEY

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    is_active: bool = True


class UserDto(BaseModel):
    """User data exposed through the API.

    Property names are matched case-insensitively on input, so "FirstName",
    "firstname" and "first_name" all populate first_name.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)
    email: str = Field(default="", max_length=100)
    is_active: bool = True

    @model_validator(mode="before")
    @classmethod
    def match_keys_case_insensitively(cls, data: Any) -> Any:
        """Rename incoming keys to the field aliases, ignoring case."""
        if not isinstance(data, dict):
            return data
        aliases = {}
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            aliases[name.lower()] = alias
            aliases[alias.lower()] = alias
        return {aliases.get(key.lower(), key): value for key, value in data.items()}

    @field_validator("email")
    @classmethod
    def check_email_format(cls, value: str) -> str:
        """Reject malformed addresses; an empty email is left to the service."""
        if not value:
            return value
        try:
            validate_email(value)
        except PydanticCustomError as e:
            raise PydanticCustomError("invalid_email", "Invalid email format") from e
        return value


def to_dto(user: User) -> UserDto:
    """Convert a User entity to its DTO, dropping internal fields."""
    return UserDto(
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        is_active=user.is_active,
    )


def to_dtos(users: list[User]) -> list[UserDto]:
    """Convert a list of User entities to DTOs."""
    return [to_dto(user) for user in users]


def to_entity(dto: UserDto) -> User:
    """Create a brand-new User entity, with a fresh id, from a DTO."""
    return User(
        first_name=dto.first_name,
        last_name=dto.last_name,
        email=dto.email,
        is_active=dto.is_active,
    )


def update_entity(dto: UserDto, existing: User) -> User:
    """Copy the DTO fields onto an existing entity, keeping its id and created_at."""
    existing.first_name = dto.first_name
    existing.last_name = dto.last_name
    existing.email = dto.email
    existing.is_active = dto.is_active
    return existing
