"""Authenticated principal and its serialized form."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from .enums import (
    AccessLevel,
    CustomerRole,
    InternalRole,
    UserType,
    parse_access_level,
    parse_role,
    parse_user_type,
)
from .errors import InvalidAccessLevelError, InvalidRoleError


@dataclass(frozen=True)
class Identity:
    """
    Who is logged in.

    Construction enforces the user-type invariants:
    - INTERNAL identities carry an InternalRole and no access level or company.
    - CUSTOMER identities carry a CustomerRole and an access level.
    """

    id: str
    username: str
    display_name: str
    user_type: UserType
    role: CustomerRole | InternalRole
    access_level: AccessLevel | None = None
    company_id: str | None = None
    company_name: str | None = None
    site_id: str | None = None
    site_name: str | None = None

    def __post_init__(self) -> None:
        if self.user_type is UserType.INTERNAL:
            if not isinstance(self.role, InternalRole):
                raise InvalidRoleError(f"internal identity {self.id!r} has customer role {self.role!r}")
            if self.access_level is not None:
                raise InvalidAccessLevelError(f"internal identity {self.id!r} cannot have an access level")
            if self.company_id is not None:
                raise ValueError(f"internal identity {self.id!r} cannot belong to a company")
        else:
            if not isinstance(self.role, CustomerRole):
                raise InvalidRoleError(f"customer identity {self.id!r} has internal role {self.role!r}")
            if self.access_level is None:
                raise InvalidAccessLevelError(f"customer identity {self.id!r} requires an access level")

    @property
    def is_internal(self) -> bool:
        return self.user_type is UserType.INTERNAL

    @property
    def is_customer(self) -> bool:
        return self.user_type is UserType.CUSTOMER

    def with_role(self, role: CustomerRole | InternalRole) -> Identity:
        return replace(self, role=role)

    def with_access_level(self, access_level: AccessLevel) -> Identity:
        return replace(self, access_level=access_level)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable form used in the persisted session."""
        return {
            "id": self.id,
            "username": self.username,
            "displayName": self.display_name,
            "userType": self.user_type.value,
            "role": self.role.value,
            "accessLevel": self.access_level.value if self.access_level else None,
            "companyId": self.company_id,
            "companyName": self.company_name,
            "siteId": self.site_id,
            "siteName": self.site_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Identity:
        user_type = parse_user_type(data.get("userType"))
        raw_level = data.get("accessLevel")
        return cls(
            id=str(data["id"]),
            username=str(data.get("username") or ""),
            display_name=str(data.get("displayName") or ""),
            user_type=user_type,
            role=parse_role(user_type, data.get("role")),
            access_level=parse_access_level(raw_level) if raw_level is not None else None,
            company_id=_str_or_none(data.get("companyId")),
            company_name=_str_or_none(data.get("companyName")),
            site_id=_str_or_none(data.get("siteId")),
            site_name=_str_or_none(data.get("siteName")),
        )


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None
