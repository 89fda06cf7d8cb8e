"""Centralized exception hierarchy for the profile picture rotator.

Usage:
    from pfp_rotator.exceptions import InvalidArgument, UpstreamApiError

    raise InvalidArgument("Number of images must be between 1 and 50")
    raise UpstreamApiError(429, "Quota exceeded")
"""

from typing import Optional


class RotatorError(Exception):
    """Base exception for all profile picture rotator errors."""
    pass


class InvalidArgument(RotatorError):
    """Raised when a caller passes an out-of-range or malformed value.

    Examples:
        - Image count outside 1..50
        - Undecodable base photo
        - Filename containing path separators
    """
    pass


class ElementNotFound(RotatorError):
    """Raised when every selector strategy fails to locate a page element.

    Examples:
        - No visible profile photo edit button
        - File input never appeared after clicking edit
    """
    pass


class FetchFailed(RotatorError):
    """Raised when fetching image bytes from the backend fails.

    Examples:
        - Non-2xx response
        - Connection refused or transport timeout
    """
    pass


class UpstreamApiError(RotatorError):
    """Raised when the remote image generation provider returns an error."""

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        prefix = f"API Error: {status}" if status is not None else "API Error"
        super().__init__(f"{prefix} - {message}")


class StorageError(RotatorError):
    """Raised when reading or writing the image storage directory fails."""
    pass


class ImageNotFound(StorageError):
    """Raised when a requested image or base photo does not exist."""
    pass


class ConfigurationError(RotatorError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Missing provider API key outside local mode
        - Unknown rotation policy
    """
    pass
