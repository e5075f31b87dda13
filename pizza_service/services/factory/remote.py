"""
Remote Pizza Factory Implementation

Sends orders to the pizza factory over HTTP with httpx.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - FACTORY_URL pointing at the factory
    - FACTORY_API_KEY identifying this franchise service

Protocol:
    POST {FACTORY_URL}/api/order
    Authorization: Bearer {FACTORY_API_KEY}
    {"diner": {...}, "order": {...}}
    -> 200 {"jwt": "...", "reportUrl": "..."}
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from pizza_service.core.config import Settings
from pizza_service.services.factory.base import BaseFactoryService, FulfillmentResult

logger = logging.getLogger(__name__)


class RemoteFactoryService(BaseFactoryService):
    """
    Production pizza factory client.

    Example:
        >>> service = RemoteFactoryService(settings)
        >>> result = await service.fulfill_order(diner, order)
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Raises:
            ValueError: If FACTORY_API_KEY is not configured
        """
        if not settings.factory_api_key:
            raise ValueError(
                "FACTORY_API_KEY is required when using the remote pizza factory. "
                "Set it in your .env file or environment variables."
            )

        self._base_url = settings.factory_url.rstrip("/")
        self._api_key = settings.factory_api_key
        self._timeout = settings.factory_timeout_seconds
        self._transport = transport

        logger.info(f"RemoteFactoryService initialized ({self._base_url})")

    @property
    def provider_name(self) -> str:
        return "remote"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )

    async def fulfill_order(self, diner: dict[str, Any], order: dict[str, Any]) -> FulfillmentResult:
        start_time = datetime.now()

        try:
            async with self._client() as client:
                response = await client.post("/api/order", json={"diner": diner, "order": order})
        except httpx.HTTPError as e:
            logger.error(f"Factory request for order #{order.get('id')} failed: {e}")
            return FulfillmentResult(
                success=False,
                error_message=f"Factory unreachable: {e}",
                response_time_ms=self._elapsed_ms(start_time),
            )

        elapsed_ms = self._elapsed_ms(start_time)
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success and body.get("jwt"):
            logger.info(f"Factory accepted order #{order.get('id')} in {elapsed_ms:.0f}ms")
            return FulfillmentResult(
                success=True,
                jwt=body["jwt"],
                report_url=body.get("reportUrl"),
                response_time_ms=elapsed_ms,
            )

        logger.warning(
            f"Factory refused order #{order.get('id')}: "
            f"HTTP {response.status_code} {body.get('message', '')}"
        )
        return FulfillmentResult(
            success=False,
            report_url=body.get("reportUrl"),
            error_message=body.get("message") or f"HTTP {response.status_code}",
            response_time_ms=elapsed_ms,
        )

    async def health_check(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get("/")
            return response.status_code < 500
        except httpx.HTTPError as e:
            logger.error(f"Factory health check failed: {e}")
            return False

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> float:
        return (datetime.now() - start_time).total_seconds() * 1000
