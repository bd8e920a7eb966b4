"""User API endpoints."""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from src.api.dependencies import get_current_identity, get_password_hasher, get_user_store
from src.schemas.user import PublicUser, UserUpdate, to_public
from src.services.auth import PasswordHasher
from src.services.user_store import UserStore

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(get_current_identity)],
)


@router.get("", response_model=list[PublicUser])
async def list_users(
    store: Annotated[UserStore, Depends(get_user_store)],
):
    """Get all users."""
    return [to_public(user) for user in store.list_users()]


@router.get("/{user_id}", response_model=PublicUser | None)
async def get_user(
    user_id: int,
    store: Annotated[UserStore, Depends(get_user_store)],
):
    """Get a user, or null if there is none with this id."""
    return to_public(store.get_by_id(user_id))


@router.put("/{user_id}", response_model=PublicUser | None)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    store: Annotated[UserStore, Depends(get_user_store)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
):
    """Update the fields that were sent; null if the user does not exist."""
    update_data = user_data.model_dump(exclude_unset=True)
    # Only age is nullable; null for any other field leaves it unchanged
    update_data = {
        key: value for key, value in update_data.items() if value is not None or key == "age"
    }
    if "password" in update_data:
        update_data["password"] = await asyncio.to_thread(hasher.hash, update_data["password"])

    return to_public(store.update(user_id, update_data))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    store: Annotated[UserStore, Depends(get_user_store)],
):
    """Delete a user. Unknown ids fail in the store."""
    store.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
