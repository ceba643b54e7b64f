class HawkerError(Exception):
    code = "E_INTERNAL"
    message = "Unexpected error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidRequestError(HawkerError):
    code = "E_INVALID_REQUEST"
    message = "Request is malformed or incomplete."


class NotFoundError(HawkerError):
    code = "E_NOT_FOUND"
    message = "Resource not found."


class ForbiddenError(HawkerError):
    code = "E_FORBIDDEN"
    message = "Resource belongs to another user."


class StorageError(HawkerError):
    code = "E_STORAGE_UNAVAILABLE"
    message = "Backing store is unavailable. Retry later."
