class WillboxdError(Exception):
    """Base class for errors raised by the API."""


class ValidationError(WillboxdError):
    """
    Raised when client input is missing or out of range.

    Mapped to a 400 response carrying the message.
    """


class StorageError(WillboxdError):
    """
    Raised when the document store cannot complete an operation.

    Args:
        operation (str): Short label of the failed operation, e.g. ``"insert_one"``.
        message (str): Human readable detail, logged but never sent to clients.
    """

    def __init__(self, operation: str, message: str = ""):
        super().__init__(message or f"{operation} failed")
        self.operation = operation
