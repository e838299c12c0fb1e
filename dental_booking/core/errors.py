"""Error taxonomy shared by the booking core and the HTTP layer."""

from fastapi import status


class BookingError(Exception):
    """Base class for errors that carry a user-displayable detail."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, field: str | None = None, missing: list[str] | None = None):
        super().__init__(detail)
        self.detail = detail
        self.field = field or (missing[0] if missing else None)
        self.missing = list(missing or [])

    def to_payload(self) -> dict:
        payload = {'detail': self.detail}
        if self.field:
            payload['field'] = self.field
        if self.missing:
            payload['missing'] = self.missing
        return payload


class ValidationError(BookingError):
    """Malformed or incomplete input."""

    status_code = status.HTTP_400_BAD_REQUEST


class ImmutableFieldError(BookingError):
    """Attempt to change a reference fixed at booking time."""

    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDenied(BookingError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(BookingError):
    status_code = status.HTTP_409_CONFLICT


class ConflictError(BookingError):
    """Slot already held; only raised when double-booking prevention is on."""

    status_code = status.HTTP_409_CONFLICT


class TransientStoreError(BookingError):
    """Backing store unreachable or timed out. Safe to retry reads."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
