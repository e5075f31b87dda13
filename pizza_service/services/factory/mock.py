"""
Mock Pizza Factory Implementation

Signs fulfillment tokens locally instead of calling the pizza factory.
Used in development mode (ENV_MODE=development) and in tests to:
    - Exercise the complete ordering flow without network access
    - Produce fulfillment tokens that can be verified with FACTORY_SECRET

Behavior:
    - Optional simulated latency
    - Optional simulated refusals (failure_rate)
"""

import asyncio
import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Any

import jwt

from pizza_service.services.factory.base import BaseFactoryService, FulfillmentResult

logger = logging.getLogger(__name__)

_JWT_ALG = "HS256"


class MockFactoryService(BaseFactoryService):
    """
    Mock implementation of the pizza factory.

    Attributes:
        secret: Key the fulfillment tokens are signed with
        failure_rate: Probability of a simulated refusal (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
    """

    VENDOR = {"id": "mock", "name": "JWT Pizza mock factory"}

    def __init__(
        self,
        secret: str,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        self.secret = secret
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency

        logger.info(
            f"MockFactoryService initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> float:
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)
        return latency * 1000

    async def fulfill_order(self, diner: dict[str, Any], order: dict[str, Any]) -> FulfillmentResult:
        latency_ms = await self._simulate_latency()

        if random.random() < self.failure_rate:
            report_url = f"https://pizza-factory.invalid/report/{uuid.uuid4().hex[:12]}"
            logger.debug(f"Mock: Factory refused order #{order.get('id')}")
            return FulfillmentResult(
                success=False,
                report_url=report_url,
                error_message="Simulated factory failure",
                response_time_ms=latency_ms,
            )

        claims = {
            "vendor": self.VENDOR,
            "diner": diner,
            "order": order,
            "iat": int(datetime.now(timezone.utc).timestamp()),
        }
        token = jwt.encode(claims, self.secret, algorithm=_JWT_ALG)

        logger.info(f"Mock: Order #{order.get('id')} fulfilled for diner #{diner.get('id')}")
        return FulfillmentResult(success=True, jwt=token, response_time_ms=latency_ms)

    def verify(self, token: str) -> dict[str, Any]:
        """Decode a fulfillment token issued by this factory."""
        return jwt.decode(token, self.secret, algorithms=[_JWT_ALG])

    async def health_check(self) -> bool:
        return True
