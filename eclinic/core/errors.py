"""Domain errors raised by the scheduling core, stores and services.

Every error carries the HTTP status the route layer answers with, so routes can
translate any ``ClinicError`` into an ``HTTPException`` in one place.
"""

from fastapi import status


class ClinicError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthenticationRequiredError(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN


class IllegalStateError(ClinicError):
    status_code = status.HTTP_409_CONFLICT


class MalformedScheduleEntryError(ClinicError, ValueError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class SlotUnavailableError(ClinicError):
    status_code = status.HTTP_409_CONFLICT


class StoreUnavailableError(ClinicError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, detail: str = 'Database unavailable. Verify DATABASE_URL and database credentials.') -> None:
        super().__init__(detail)
