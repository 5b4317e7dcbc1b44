"""Error taxonomy for the access layer.

Controllers catch these at their own boundary, log them and leave state
unchanged. Only AccessConfigError escapes, and only at startup.
"""

from __future__ import annotations


class AccessError(Exception):
    """Base class for access-layer failures."""


class InvalidCredentials(AccessError):
    """Login rejected. Never says whether the user or the secret was wrong."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class InvalidRoleError(AccessError, ValueError):
    pass


class InvalidAccessLevelError(AccessError, ValueError):
    pass


class PreconditionViolation(AccessError):
    """Transition attempted from a state or by an identity where it is not legal."""


class MissingCustomer(AccessError):
    pass


class AccessConfigError(AccessError, ValueError):
    """Raised when the access YAML configuration is invalid."""
