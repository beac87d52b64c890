"""Shared auth error types."""


class AuthenticationError(Exception):
    """Raised when a request cannot be authenticated."""
