"""
HTTP routers, one per resource area.
"""

from pizza_service.routers import auth, franchise, order, user

__all__ = ["auth", "franchise", "order", "user"]
