from fastapi import status


class AppError(Exception):
    """Base error of the buddy system. Carries the client-facing message."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InvalidOperation(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid operation"


class PersistenceError(AppError):
    default_message = "Server error"
