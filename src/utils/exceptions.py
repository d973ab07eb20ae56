"""Custom exception classes."""


class FileWriteError(Exception):
    """Raised when unable to write to JSON file."""
    pass


class StoreError(Exception):
    """Raised when the record store rejects an operation.

    The message is the store's own text and is shown to users verbatim.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
