"""
Domain exceptions and their HTTP mapping.

Services raise these; the handler registered in create_app() renders them as
{"detail": ...} with the matching status code.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class PocketPalError(Exception):
    """Base class for domain errors."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(PocketPalError):
    """Row does not exist or belongs to another user."""

    status_code = status.HTTP_404_NOT_FOUND


class IntegrityGuardError(PocketPalError):
    """Delete or create refused because of rows that reference the target."""

    status_code = status.HTTP_409_CONFLICT


class DomainValidationError(PocketPalError):
    """Cross-entity rule violated (e.g. subcategory of another category)."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


async def pocketpal_error_handler(request: Request, exc: PocketPalError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
