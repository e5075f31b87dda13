"""
User endpoints: the caller's own profile, admin user management, updates.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from pizza_service.auth import authenticate_token, get_app_settings, get_repository, issue_session
from pizza_service.core.config import Settings
from pizza_service.core.exceptions import Forbidden, NotFound
from pizza_service.core.roles import AuthUser, Role
from pizza_service.repository import PizzaRepository
from pizza_service.schemas import AuthResponse, MessageResponse, UserListResponse, UserOut, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Users"])


def _require_self_or_admin(user: AuthUser, user_id: int) -> None:
    if user.id != user_id and not user.is_role(Role.ADMIN):
        raise Forbidden("unauthorized")


@router.get("/me", response_model=UserOut, summary="Get authenticated user")
async def get_me(user: AuthUser = Depends(authenticate_token)) -> UserOut:
    return UserOut.model_validate(user.to_dict())


@router.get("", response_model=UserListResponse, summary="List users (admin)")
@router.get("/", response_model=UserListResponse, include_in_schema=False)
async def list_users(
    name: Optional[str] = Query(None, description="Name filter; * matches anything"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> UserListResponse:
    if not user.is_role(Role.ADMIN):
        raise Forbidden("unauthorized")

    users, more = await repository.list_users(page=page, limit=min(limit, settings.page_limit_max), name=name)
    return UserListResponse(users=[UserOut.model_validate(u) for u in users], more=more)


@router.get("/{user_id}", response_model=UserOut, summary="Get a user")
async def get_user(
    user_id: int,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> UserOut:
    _require_self_or_admin(user, user_id)

    found = await repository.get_user(user_id)
    if found is None:
        raise NotFound("unknown user")
    return UserOut.model_validate(found)


@router.put("/{user_id}", response_model=AuthResponse, summary="Update user")
async def update_user(
    user_id: int,
    body: UserUpdate,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    _require_self_or_admin(user, user_id)

    updated = await repository.update_user(user_id, name=body.name, email=body.email, password=body.password)
    token = await issue_session(repository, settings, updated)

    logger.info(f"User #{user_id} updated by user #{user.id}")
    return AuthResponse(user=UserOut.model_validate(updated), token=token)


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete user (admin)")
async def delete_user(
    user_id: int,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> MessageResponse:
    if not user.is_role(Role.ADMIN):
        raise Forbidden("unauthorized")

    await repository.delete_user(user_id)
    return MessageResponse(message="user deleted")
