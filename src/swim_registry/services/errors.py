"""Error taxonomy shared by the record store and listing services"""

from fastapi import status


class RegistryError(Exception):
    """Base class for registry errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "registry_error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


class ValidationError(RegistryError):
    """Missing or malformed request field or path parameter."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid request"


class NotFoundError(RegistryError):
    """No record exists for the given id."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "User not found"


class StoreError(RegistryError):
    """Persistence failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Store error"


class ConflictError(StoreError):
    """Unique constraint violation, e.g. a duplicate email.

    Kept as a StoreError subclass so it surfaces as a generic 500.
    """

    detail = "Unique constraint violated"
