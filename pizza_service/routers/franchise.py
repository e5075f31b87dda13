"""
Franchise and store endpoints.

Anyone may list franchises. Only admins create or delete franchises; stores
are managed by the franchise's own admins or by a global admin.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from pizza_service.auth import authenticate_token, get_app_settings, get_repository, set_auth_user
from pizza_service.core.config import Settings
from pizza_service.core.exceptions import Forbidden
from pizza_service.core.roles import AuthUser, Role
from pizza_service.models import Franchise
from pizza_service.repository import PizzaRepository
from pizza_service.schemas import (
    FranchiseAdminOut,
    FranchiseCreate,
    FranchiseCreateResponse,
    FranchiseListResponse,
    FranchiseOut,
    MessageResponse,
    StoreCreate,
    StoreOut,
    StoreSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/franchise", tags=["Franchises"])


async def _franchise_detail(repository: PizzaRepository, franchise: Franchise, with_admin_view: bool) -> FranchiseOut:
    """Build the listing entry; admins, revenue only for the admin view."""
    if not with_admin_view:
        return FranchiseOut(
            id=franchise.id,
            name=franchise.name,
            stores=[StoreSummary(id=s.id, name=s.name) for s in franchise.stores],
        )

    admins = await repository.get_franchise_admins(franchise.id)
    revenue = await repository.store_revenue(s.id for s in franchise.stores)
    return FranchiseOut(
        id=franchise.id,
        name=franchise.name,
        admins=[FranchiseAdminOut.model_validate(a) for a in admins],
        stores=[
            StoreSummary(id=s.id, name=s.name, total_revenue=revenue.get(s.id, 0.0))
            for s in franchise.stores
        ],
    )


async def _managed_franchise(
    repository: PizzaRepository, user: AuthUser, franchise_id: int, refusal: str
) -> Franchise:
    """Return the franchise if ``user`` may manage its stores, else raise Forbidden."""
    franchise = await repository.get_franchise(franchise_id)
    if franchise is None:
        raise Forbidden(refusal)
    if user.is_role(Role.ADMIN):
        return franchise

    admins = await repository.get_franchise_admins(franchise_id)
    if not any(admin.id == user.id for admin in admins):
        raise Forbidden(refusal)
    return franchise


@router.get(
    "",
    response_model=FranchiseListResponse,
    response_model_exclude_none=True,
    summary="List franchises",
)
async def list_franchises(
    name: Optional[str] = Query(None, description="Name filter; * matches anything"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    user: Optional[AuthUser] = Depends(set_auth_user),
    repository: PizzaRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> FranchiseListResponse:
    franchises, more = await repository.list_franchises(
        page=page, limit=min(limit, settings.page_limit_max), name=name
    )
    is_admin = user is not None and user.is_role(Role.ADMIN)
    return FranchiseListResponse(
        franchises=[await _franchise_detail(repository, f, is_admin) for f in franchises],
        more=more,
    )


@router.get(
    "/{user_id}",
    response_model=list[FranchiseOut],
    response_model_exclude_none=True,
    summary="List a user's franchises",
)
async def list_user_franchises(
    user_id: int,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> list[FranchiseOut]:
    if user.id != user_id and not user.is_role(Role.ADMIN):
        return []

    franchises = await repository.get_user_franchises(user_id)
    return [await _franchise_detail(repository, f, True) for f in franchises]


@router.post("", response_model=FranchiseCreateResponse, summary="Create a franchise (admin)")
async def create_franchise(
    body: FranchiseCreate,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> FranchiseCreateResponse:
    if not user.is_role(Role.ADMIN):
        raise Forbidden("unable to create a franchise")

    franchise, admins = await repository.create_franchise(body.name, [a.email for a in body.admins])

    logger.info(f"Franchise #{franchise.id} created by user #{user.id}")
    return FranchiseCreateResponse(
        id=franchise.id,
        name=franchise.name,
        admins=[FranchiseAdminOut.model_validate(a) for a in admins],
    )


@router.delete("/{franchise_id}", response_model=MessageResponse, summary="Delete a franchise (admin)")
async def delete_franchise(
    franchise_id: int,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> MessageResponse:
    if not user.is_role(Role.ADMIN):
        raise Forbidden("unable to delete a franchise")

    await repository.delete_franchise(franchise_id)
    return MessageResponse(message="franchise deleted")


@router.post("/{franchise_id}/store", response_model=StoreOut, summary="Create a store")
async def create_store(
    franchise_id: int,
    body: StoreCreate,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> StoreOut:
    await _managed_franchise(repository, user, franchise_id, "unable to create a store")

    store = await repository.create_store(franchise_id, body.name, address=body.address, phone=body.phone)

    logger.info(f"Store #{store.id} created in franchise #{franchise_id} by user #{user.id}")
    return StoreOut.model_validate(store)


@router.delete(
    "/{franchise_id}/store/{store_id}",
    response_model=MessageResponse,
    summary="Delete a store",
)
async def delete_store(
    franchise_id: int,
    store_id: int,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> MessageResponse:
    await _managed_franchise(repository, user, franchise_id, "unable to delete a store")

    if not await repository.delete_store(franchise_id, store_id):
        raise Forbidden("unable to delete a store")
    return MessageResponse(message="store deleted")
