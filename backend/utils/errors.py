"""
Business exceptions raised by route handlers and the checkout workflow.
Each one carries the HTTP status it maps to; main.py renders them as
{"msg": ...} JSON responses.
"""

from fastapi import status


class ShopError(Exception):
    """Base class for all expected, user-facing failures."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Server error"):
        self.message = message
        super().__init__(self.message)


class BadRequest(ShopError):
    """Domain rule violated (empty cart, invalid order status, ...)."""
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(ShopError):
    """No bearer credential was sent."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "No token, authorization denied"):
        super().__init__(message)


class InvalidCredential(ShopError):
    """Bad token, or bad email/password pair."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class Forbidden(ShopError):
    """Authenticated, but not allowed to touch the resource."""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFound(ShopError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ShopError):
    """Uniqueness or stock conflicts."""
    status_code = status.HTTP_409_CONFLICT
