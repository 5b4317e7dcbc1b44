from __future__ import annotations

from enum import Enum
from typing import TypeVar, cast

from .errors import InvalidAccessLevelError, InvalidRoleError


class UserType(str, Enum):
    INTERNAL = "internal"
    CUSTOMER = "customer"


class AccessLevel(str, Enum):
    """Customer access scope. SITE users are pinned to their own site."""

    SITE = "site"
    COMPANY = "company"


class CustomerRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    VIEWER = "viewer"


class InternalRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    OPERATIONS_MANAGER = "operations_manager"
    SUPPORT_ENGINEER = "support_engineer"
    DEPLOYMENT_ENGINEER = "deployment_engineer"
    SALES_REPRESENTATIVE = "sales_representative"


class ViewLevel(str, Enum):
    COMPANY = "company"
    SITE = "site"


E = TypeVar("E", bound=Enum)


def _coerce(enum_cls: type[E], raw: object) -> E | None:
    if isinstance(raw, enum_cls):
        return raw
    if isinstance(raw, Enum):
        # A member of a different enum is never legal here, even if its value collides.
        return None
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    try:
        return enum_cls(text.lower())
    except ValueError:
        pass
    return enum_cls.__members__.get(text.upper())


def parse_role(user_type: UserType, raw: object) -> CustomerRole | InternalRole:
    """
    Parse a role for the given user type.

    Accepts enum members, values ("admin") and names ("ADMIN").
    Raises InvalidRoleError when the value is not legal for the user type.
    """

    enum_cls: type[CustomerRole] | type[InternalRole] = (
        InternalRole if user_type is UserType.INTERNAL else CustomerRole
    )
    role = _coerce(enum_cls, raw)
    if role is None:
        raise InvalidRoleError(f"invalid {user_type.value} role: {raw!r}")
    return role


def parse_customer_role(raw: object) -> CustomerRole:
    return cast(CustomerRole, parse_role(UserType.CUSTOMER, raw))


def parse_access_level(raw: object) -> AccessLevel:
    level = _coerce(AccessLevel, raw)
    if level is None:
        raise InvalidAccessLevelError(f"invalid access level: {raw!r}")
    return level


def parse_user_type(raw: object) -> UserType:
    user_type = _coerce(UserType, raw)
    if user_type is None:
        raise ValueError(f"invalid user type: {raw!r}")
    return user_type
