"""
Menu and order endpoints.

The menu is public to read and admin-only to extend. Orders are placed and
listed by the authenticated diner; each placed order is sent to the pizza
factory, whose fulfillment token is returned alongside the order.
"""

import logging

from fastapi import APIRouter, Depends, Query

from pizza_service.auth import authenticate_token, get_repository
from pizza_service.core.exceptions import Forbidden, FulfillmentError
from pizza_service.core.roles import AuthUser, Role
from pizza_service.repository import PizzaRepository
from pizza_service.schemas import (
    MenuItemCreate,
    MenuItemOut,
    OrderCreate,
    OrderCreateResponse,
    OrderListResponse,
    OrderOut,
)
from pizza_service.services.factory import BaseFactoryService, get_factory_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/order", tags=["Orders"])


@router.get("/menu", response_model=list[MenuItemOut], summary="Get the pizza menu")
async def get_menu(repository: PizzaRepository = Depends(get_repository)) -> list[MenuItemOut]:
    return [MenuItemOut.model_validate(item) for item in await repository.get_menu()]


@router.put("/menu", response_model=list[MenuItemOut], summary="Add an item to the menu (admin)")
async def add_menu_item(
    body: MenuItemCreate,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> list[MenuItemOut]:
    if not user.is_role(Role.ADMIN):
        raise Forbidden("unable to add menu item")

    item = await repository.add_menu_item(body.title, body.description, body.image, body.price)
    logger.info(f"Menu item #{item.id} '{item.title}' added by user #{user.id}")

    return [MenuItemOut.model_validate(i) for i in await repository.get_menu()]


@router.get("", response_model=OrderListResponse, summary="Get the orders for the authenticated user")
async def list_orders(
    page: int = Query(1, ge=1),
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> OrderListResponse:
    orders = await repository.get_orders(user.id, page=page)
    return OrderListResponse(
        diner_id=user.id,
        orders=[OrderOut.model_validate(o) for o in orders],
        page=page,
    )


@router.post("", response_model=OrderCreateResponse, summary="Create an order for the authenticated user")
async def create_order(
    body: OrderCreate,
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
    factory: BaseFactoryService = Depends(get_factory_service),
) -> OrderCreateResponse:
    order = await repository.add_diner_order(
        diner_id=user.id,
        franchise_id=body.franchise_id,
        store_id=body.store_id,
        items=[(item.menu_id, item.description, item.price) for item in body.items],
    )
    order_out = OrderOut.model_validate(order)
    logger.info(f"Order #{order.id} placed by diner #{user.id} at store #{order.store_id}")

    result = await factory.fulfill_order(
        diner={"id": user.id, "name": user.name, "email": user.email},
        order=order_out.model_dump(mode="json", by_alias=True),
    )
    logger.info(
        f"Factory '{factory.provider_name}' answered order #{order.id} in {result.response_time_ms:.0f}ms"
    )
    if not result.success:
        logger.error(f"Order #{order.id} was not fulfilled: {result.error_message}")
        extra = {"reportUrl": result.report_url} if result.report_url else {}
        raise FulfillmentError("Failed to fulfill order at factory", **extra)

    return OrderCreateResponse(order=order_out, jwt=result.jwt, report_url=result.report_url)
