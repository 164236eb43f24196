"""Exceptions raised by the expense API."""


class ValidationError(Exception):
    """Exception raised for input validation errors."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        """Initialize ValidationError.

        Args:
            message: Error description
            status_code: HTTP status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class StoreError(Exception):
    """Exception raised when the expense table cannot be read or written."""
