"""
Custom Exceptions

Every error a route can raise on purpose. They are HTTPException
subclasses so FastAPI can short-circuit a request with them; the handlers
in main.py render them into the {"error": ...} envelope.
"""
from typing import Dict, List, Optional
from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """Raised when request data fails a business rule."""

    def __init__(self, detail: str = "Validation error", errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )
        self.errors = errors or {}


class AuthenticationError(HTTPException):
    """Raised when authentication fails."""

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    """Raised when the caller lacks access to a tenant or action."""

    def __init__(self, detail: str = "Access denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class TenantIsolationError(HTTPException):
    """
    Raised when a tenant isolation violation is detected.

    Reaching this means a code path tried to write a row of one tenant
    through another tenant's session. Always logged as a security event.
    """

    def __init__(self, detail: str = "Tenant isolation violation"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class NotFoundError(HTTPException):
    """Raised when an entity cannot be found in the current tenant."""

    def __init__(self, entity: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity} not found"
        )
        self.entity = entity


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class PlanLimitError(HTTPException):
    """Raised when creating a resource would exceed the tenant's plan quota."""

    def __init__(self, resource: str, current: int, limit: int):
        super().__init__(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail=f"Plan limit reached for {resource} ({current}/{limit}). Upgrade your plan to continue."
        )
        self.resource = resource
        self.current = current
        self.limit = limit
