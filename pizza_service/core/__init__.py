"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from pizza_service.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from pizza_service.core.exceptions import (
    StatusCodeError,
    ValidationError,
    Unauthorized,
    Forbidden,
    NotFound,
    FulfillmentError,
)
from pizza_service.core.roles import Role, RoleAssignment, AuthUser, has_role

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "StatusCodeError",
    "ValidationError",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "FulfillmentError",
    "Role",
    "RoleAssignment",
    "AuthUser",
    "has_role",
]
