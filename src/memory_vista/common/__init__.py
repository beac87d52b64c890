"""Common utilities and helpers used across the access service."""

__all__ = [
    "exceptions",
    "ids",
    "logging",
    "middleware",
    "schema",
]
