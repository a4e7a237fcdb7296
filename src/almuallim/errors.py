"""Exceptions raised for malformed caller input."""


class InvalidArgument(ValueError):
    """Caller passed a value the operation cannot accept."""
