"""
Domain exception hierarchy.

Services raise these; the handlers registered in ``domus.main`` turn them
into ``{"statusCode": ..., "message": ...}`` response bodies.
"""

from typing import Dict, List, Optional
from fastapi import status


class DomusError(Exception):
    """Base class for every error the API reports to its clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class ValidationError(DomusError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


# ============================================================================
# Authentication and Authorization
# ============================================================================

class Unauthorized(DomusError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class TokenError(Unauthorized):
    default_message = "Invalid token"


class InvalidSignature(TokenError):
    default_message = "Invalid token signature"


class TokenExpired(TokenError):
    default_message = "Token has expired"


class MalformedToken(TokenError):
    default_message = "Malformed token"


class Forbidden(DomusError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to access this resource"


# ============================================================================
# Resource state
# ============================================================================

class NotFound(DomusError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Conflict(DomusError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


# ============================================================================
# Server side
# ============================================================================

class UnsupportedResourceType(DomusError):
    """A route is tagged with a resource type that has no ownership resolver."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, resource_type: str):
        self.resource_type = resource_type
        super().__init__(f"Unsupported resource type: {resource_type}")


class StorageError(DomusError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Asset storage failed"


class EmailDeliveryError(DomusError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Email delivery failed"
