"""
Pizza Factory Service Abstract Base Class

Defines the interface contract for fulfillment implementations. When a diner
places an order, the factory acknowledges it with a signed fulfillment token
(``jwt``) that is independent of the diner's session token.

Design Pattern: Strategy Pattern
    - MockFactoryService signs tokens locally (development, tests)
    - RemoteFactoryService calls the pizza factory over HTTP
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class FulfillmentResult:
    """
    Standardized result from a fulfillment request.

    Attributes:
        success: Whether the factory accepted the order
        jwt: Signed fulfillment token when accepted
        report_url: Link the factory offers for reporting problems
        error_message: Error description if the factory refused the order
        response_time_ms: Time taken by the factory
    """
    success: bool
    jwt: Optional[str] = None
    report_url: Optional[str] = None
    error_message: Optional[str] = None
    response_time_ms: float = 0.0


class BaseFactoryService(ABC):
    """
    Abstract base class for pizza factory services.

    Example:
        >>> service = create_factory_service(settings)
        >>> result = await service.fulfill_order(
        ...     diner={"id": 4, "name": "pizza diner", "email": "d@jwt.com"},
        ...     order={"id": 1, "franchiseId": 1, "storeId": 1, "items": [...]},
        ... )
        >>> if result.success:
        ...     print(result.jwt)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the factory provider (e.g. "mock", "remote")."""
        pass

    @abstractmethod
    async def fulfill_order(self, diner: dict[str, Any], order: dict[str, Any]) -> FulfillmentResult:
        """
        Ask the factory to make an order.

        Args:
            diner: ``{"id", "name", "email"}`` of the ordering diner
            order: The persisted order in its wire (camelCase) form

        Returns:
            FulfillmentResult: Standardized result object
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the factory.

        Returns:
            bool: True if the factory is reachable
        """
        pass
