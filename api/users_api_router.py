"""API router for user endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from api.application_model import AppState, get_services
from service.errors import ConflictError, NotFoundError, ValidationError
from service.users.user_model import DTO_ERROR_MESSAGES, UserDto

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

USER_NOT_FOUND = "User not found"
INVALID_USER_DATA = "Invalid user data"


def invalid_user_data_message(errors: list[dict]) -> str:
    """Describe the first request body error, e.g. "Invalid email format"."""
    for error in errors:
        loc = error.get("loc", ())
        if len(loc) == 2 and loc[0] == "body":
            message = DTO_ERROR_MESSAGES.get((loc[1], error.get("type")))
            if message:
                return message
    return INVALID_USER_DATA


@router.get("")
async def get_users(
    services: Annotated[AppState, Depends(get_services)],
) -> list[UserDto]:
    """Get all users."""
    try:
        return await services.users_service.list_all()
    except Exception as e:
        logger.exception("Error getting users")
        raise HTTPException(status_code=500, detail="Error getting users") from e


@router.get("/active")
async def get_active_users(
    services: Annotated[AppState, Depends(get_services)],
) -> list[UserDto]:
    """Get all active users."""
    try:
        return await services.users_service.list_active()
    except Exception as e:
        logger.exception("Error getting active users")
        raise HTTPException(
            status_code=500, detail="Error getting active users"
        ) from e


@router.get("/email/{email}")
async def get_user_by_email(
    services: Annotated[AppState, Depends(get_services)],
    email: str,
) -> UserDto:
    """Get a user by email address.

    Args:
        services: Application services dependency
        email: Email address of the user

    Returns:
        The user owning the email

    """
    try:
        user = await services.users_service.get_by_email(email)
    except Exception as e:
        logger.exception("Error getting user with email: %s", email)
        raise HTTPException(status_code=500, detail="Error getting user") from e
    if user is None:
        raise HTTPException(status_code=404, detail=USER_NOT_FOUND)
    return user


@router.get("/{user_id}")
async def get_user_by_id(
    services: Annotated[AppState, Depends(get_services)],
    user_id: str,
) -> UserDto:
    """Get a user by id.

    Args:
        services: Application services dependency
        user_id: ID of the user

    Returns:
        The user with the given id

    """
    try:
        user = await services.users_service.get_by_id(user_id)
    except Exception as e:
        logger.exception("Error getting user with id: %s", user_id)
        raise HTTPException(status_code=500, detail="Error getting user") from e
    if user is None:
        raise HTTPException(status_code=404, detail=USER_NOT_FOUND)
    return user


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    services: Annotated[AppState, Depends(get_services)],
    user: UserDto,
) -> UserDto:
    """Create a new user."""
    try:
        return await services.users_service.create(user)
    except ValidationError as e:
        logger.warning("Invalid user data: %s", e)
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ConflictError as e:
        logger.warning("Business rule violation: %s", e)
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        logger.exception("Error creating user")
        raise HTTPException(status_code=500, detail="Error creating user") from e


@router.put("/{user_id}")
async def update_user(
    services: Annotated[AppState, Depends(get_services)],
    user_id: str,
    user: UserDto,
) -> UserDto:
    """Update an existing user."""
    try:
        return await services.users_service.update(user_id, user)
    except ValidationError as e:
        logger.warning("Invalid user data: %s", e)
        raise HTTPException(status_code=400, detail=str(e)) from e
    except NotFoundError as e:
        logger.warning("User not found for update: %s", e)
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ConflictError as e:
        logger.warning("Business rule violation: %s", e)
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        logger.exception("Error updating user with id: %s", user_id)
        raise HTTPException(status_code=500, detail="Error updating user") from e


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    services: Annotated[AppState, Depends(get_services)],
    user_id: str,
) -> Response:
    """Delete a user."""
    try:
        await services.users_service.delete(user_id)
    except ValidationError as e:
        logger.warning("Invalid user id: %s", e)
        raise HTTPException(status_code=400, detail=str(e)) from e
    except NotFoundError as e:
        logger.warning("User not found for deletion: %s", e)
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception("Error deleting user with id: %s", user_id)
        raise HTTPException(status_code=500, detail="Error deleting user") from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
