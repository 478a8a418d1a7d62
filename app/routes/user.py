"""User administration routes and the current user's profile."""

import logging

from fastapi import APIRouter, Depends, status

from app.auth import get_current_user, require_groups
from app.exceptions import UserNotFoundError
from app.models.user import User
from app.schemas.user import MessageResponse, UserCreate, UserListItem, UserResponse, UserUpdate
from app.services.user_service import UserService, get_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

admin_only = [Depends(require_groups())]


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("", response_model=list[UserListItem], dependencies=admin_only)
async def list_users(service: UserService = Depends(get_user_service)):
    return [
        UserListItem(**UserResponse.model_validate(listing.user).model_dump(), status=listing.status.value)
        for listing in await service.get_all()
    ]


@router.get("/groups", response_model=dict[str, int], dependencies=admin_only)
async def list_groups(service: UserService = Depends(get_user_service)):
    """Group names mapped to ids, for the group checkboxes of the user form."""
    return await service.get_groups()


@router.get("/{user_id}", response_model=UserResponse, dependencies=admin_only)
async def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    return (await service.by_id(user_id)).unwrap()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED, dependencies=admin_only)
async def create_user(payload: UserCreate, service: UserService = Depends(get_user_service)):
    return (await service.create(payload.model_dump())).unwrap()


@router.put("/{user_id}", response_model=UserResponse, dependencies=admin_only)
async def update_user(user_id: int, payload: UserUpdate, service: UserService = Depends(get_user_service)):
    data = payload.model_dump(exclude_unset=True)
    data["id"] = user_id
    return (await service.update(data)).unwrap()


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_groups()),
    service: UserService = Depends(get_user_service),
):
    if not await service.destroy(user_id):
        raise UserNotFoundError(user_id)
    logger.info("User %d deleted by user %d", user_id, current_user.id)


@router.post("/{user_id}/ban", response_model=MessageResponse, dependencies=admin_only)
async def ban_user(user_id: int, service: UserService = Depends(get_user_service)):
    (await service.ban(user_id)).unwrap()
    return MessageResponse(message="User has been banned.")


@router.post("/{user_id}/unban", response_model=MessageResponse, dependencies=admin_only)
async def unban_user(user_id: int, service: UserService = Depends(get_user_service)):
    (await service.unban(user_id)).unwrap()
    return MessageResponse(message="User has been unbanned.")
