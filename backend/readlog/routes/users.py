"""
Readlog Backend - User Route Handlers
======================================

What:  CRUD endpoints for user accounts under /users.
How:   Decode path/query/body, hand the request's gateway to UserService,
       wrap the result in the envelope. Errors are raised, not returned;
       the global handlers in main.py render them.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from readlog.gateway import PersistenceGateway, get_gateway
from readlog.schemas.envelope import Envelope, envelope_response
from readlog.schemas.record import INT32_MAX
from readlog.schemas.user import UserCreate, UserResponse, UserUpdate
from readlog.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

ERROR_RESPONSES = {
    400: {"description": "Invalid request", "model": Envelope[None]},
    500: {"description": "Server error", "model": Envelope[None]},
}


def _user_id(description: str = "User ID"):
    return Path(..., ge=1, le=INT32_MAX, description=description)


@router.get(
    "",
    response_model=Envelope[List[UserResponse]],
    responses=ERROR_RESPONSES,
    summary="List users",
    description="Returns all user accounts with their reading records. Passwords are never included.",
)
async def list_users(
    username: Optional[str] = Query(
        default=None,
        max_length=50,
        description="Only users whose username contains this text",
    ),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    users = await user_service.list(gateway, username_contains=username)
    return envelope_response(data=users, message="Users retrieved successfully")


@router.get(
    "/{user_id}",
    response_model=Envelope[UserResponse],
    responses={**ERROR_RESPONSES, 404: {"description": "User not found", "model": Envelope[None]}},
    summary="Get user by ID",
)
async def get_user(
    user_id: int = _user_id(),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    user = await user_service.get(gateway, user_id)
    return envelope_response(data=user, message="User retrieved successfully")


@router.post(
    "",
    status_code=201,
    response_model=Envelope[UserResponse],
    responses={**ERROR_RESPONSES, 409: {"description": "Username already exists", "model": Envelope[None]}},
    summary="Register a new user",
)
async def create_user(
    body: UserCreate,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    user = await user_service.register(
        gateway,
        username=body.username,
        password=body.password,
        favorite_genres=body.favorite_genres,
        email=body.email,
    )
    return envelope_response(data=user, message="User created successfully", status_code=201)


@router.put(
    "/{user_id}",
    response_model=Envelope[UserResponse],
    responses={
        **ERROR_RESPONSES,
        404: {"description": "User not found", "model": Envelope[None]},
        409: {"description": "Username already exists", "model": Envelope[None]},
    },
    summary="Update a user",
    description="Replaces username, password and favorite genres. The password is always re-hashed.",
)
async def update_user(
    body: UserUpdate,
    user_id: int = _user_id(),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    user = await user_service.update(
        gateway,
        user_id,
        username=body.username,
        password=body.password,
        favorite_genres=body.favorite_genres,
        email=body.email,
    )
    return envelope_response(data=user, message="User updated successfully")


@router.delete(
    "/{user_id}",
    response_model=Envelope[None],
    responses={**ERROR_RESPONSES, 404: {"description": "User not found", "model": Envelope[None]}},
    summary="Delete a user",
    description="Permanently removes a user account and all of their reading records.",
)
async def delete_user(
    user_id: int = _user_id(),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    await user_service.delete(gateway, user_id)
    return envelope_response(message="User deleted successfully")
