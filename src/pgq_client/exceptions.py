"""Errors raised by the client itself.

Backend failures are never wrapped: whatever the adapter raises reaches the caller as is.
"""


class PgqValidationError(ValueError):
    """Raised before any backend call when the arguments have the wrong shape."""
