from .errors import StorageError, ValidationError, WillboxdError

__version__ = "1.0.0"

__all__ = ["StorageError", "ValidationError", "WillboxdError", "__version__"]
