from hawker.core.errors import ForbiddenError, HawkerError, InvalidRequestError, NotFoundError


class InvalidTimeFormatError(InvalidRequestError):
    message = "Time must be HH:MM in 24-hour format."


class InvalidIntervalError(InvalidRequestError):
    message = "End time must be after start time."


class PastDateError(HawkerError):
    code = "E_PAST_DATE"
    message = "Cannot book a table for a past date."


class PastTimeError(HawkerError):
    code = "E_PAST_TIME"
    message = "Cannot book a table for a time that has already passed."


class ConflictError(HawkerError):
    code = "E_CONFLICT"
    message = "Table is already booked for this time."


class ReservationNotFoundError(NotFoundError):
    message = "Reservation not found."


class TableNotFoundError(NotFoundError):
    code = "E_TABLE_NOT_FOUND"
    message = "Table not found."


class ReservationForbiddenError(ForbiddenError):
    message = "Reservation belongs to another user."
