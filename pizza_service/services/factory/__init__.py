"""
Pizza Factory Service Factory

Provides a single entry point for obtaining a fulfillment service instance.
The rest of the application only sees BaseFactoryService.

Usage:
    from pizza_service.services.factory import get_factory_service

    @router.post("/api/order")
    async def create_order(..., factory: BaseFactoryService = Depends(get_factory_service)):
        result = await factory.fulfill_order(diner, order)

Environment Switching:
    - ENV_MODE=development → MockFactoryService (no network calls)
    - ENV_MODE=staging/production → RemoteFactoryService
"""

import logging

from fastapi import Request

from pizza_service.core.config import Settings
from pizza_service.services.factory.base import BaseFactoryService, FulfillmentResult
from pizza_service.services.factory.mock import MockFactoryService
from pizza_service.services.factory.remote import RemoteFactoryService

logger = logging.getLogger(__name__)


def create_factory_service(settings: Settings) -> BaseFactoryService:
    """
    Build the factory service for the configured environment.

    Raises:
        ValueError: If the remote factory is selected but FACTORY_API_KEY is missing
    """
    if settings.is_development:
        logger.info("Factory Service: Using MockFactoryService (development mode)")
        return MockFactoryService(secret=settings.factory_secret)

    logger.info(
        f"Factory Service: Using RemoteFactoryService "
        f"({settings.env_mode.value} mode)"
    )
    return RemoteFactoryService(settings)


def get_factory_service(request: Request) -> BaseFactoryService:
    """FastAPI dependency returning the application's factory service."""
    return request.app.state.factory_service


__all__ = [
    "create_factory_service",
    "get_factory_service",
    "BaseFactoryService",
    "FulfillmentResult",
    "MockFactoryService",
    "RemoteFactoryService",
]
