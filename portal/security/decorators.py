from __future__ import annotations

from collections.abc import Callable


def require_capability(*names: str) -> Callable:
    """
    Require capabilities of the *effective* identity (the impersonated
    customer while in customer view).

    Like the other decorators here, this only attaches metadata; the global
    ``enforce_access`` dependency reads it after routing.
    """

    def decorator(fn: Callable) -> Callable:
        existing = set(getattr(fn, "__access_capabilities__", set()))
        setattr(fn, "__access_capabilities__", existing | set(names))
        return fn

    return decorator


def require_staff_capability(*names: str) -> Callable:
    """Require capabilities of the logged-in staff identity itself."""

    def decorator(fn: Callable) -> Callable:
        existing = set(getattr(fn, "__access_staff_capabilities__", set()))
        setattr(fn, "__access_staff_capabilities__", existing | set(names))
        return fn

    return decorator


def write_action(action_name: str) -> Callable:
    """
    Mark an endpoint as a write. Blocked while read-only (customer view) and
    in the aggregated company view, whatever the capability set says.
    """

    def decorator(fn: Callable) -> Callable:
        setattr(fn, "__access_write_action__", action_name)
        return fn

    return decorator
