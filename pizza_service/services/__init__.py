"""
                        Services Module

External collaborators behind the strategy pattern. Each service has a
Mock (development) and a Real (staging/production) implementation.

Services:
    - factory: pizza factory that fulfills orders and issues fulfillment tokens
"""

from pizza_service.services.factory import create_factory_service, get_factory_service

__all__ = ["create_factory_service", "get_factory_service"]
