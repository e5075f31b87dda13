"""
Error taxonomy shared by the repository, routers and exception handlers.

Every error carries the HTTP status it maps to; the handlers registered in
``pizza_service.main`` render it as ``{"message": ...}``.
"""

from typing import Optional

__all__ = ["StatusCodeError", "ValidationError", "Unauthorized", "Forbidden", "NotFound",
           "FulfillmentError"]


class StatusCodeError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, **extra):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        # Additional fields merged into the response body
        self.extra = extra


class ValidationError(StatusCodeError):
    status_code = 400


class Unauthorized(StatusCodeError):
    status_code = 401

    def __init__(self, message: str = "unauthorized", **extra):
        super().__init__(message, **extra)


class Forbidden(StatusCodeError):
    status_code = 403


class NotFound(StatusCodeError):
    status_code = 404


class FulfillmentError(StatusCodeError):
    status_code = 500
