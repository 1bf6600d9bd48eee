"""Custom exceptions for background reparsing."""

from typing import Any


class ReparseError(Exception):
    """Raised when a highlight pass fails."""

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details
