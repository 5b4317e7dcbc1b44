"""
Capability resolution.

Maps an identity to the flat set of named capabilities that page gating
consults. Resolution is a pure lookup:

- CUSTOMER identities are keyed by (access level, role).
- INTERNAL identities are keyed by role alone.

Anything missing from the tables resolves to an empty set, never an error,
so callers always have a defined object to gate on.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterator

from .config import AccessConfig
from .enums import CustomerRole, InternalRole
from .identity import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapabilitySet:
    """Granted capabilities. Unknown or absent names read as False."""

    granted: frozenset[str] = frozenset()
    known: frozenset[str] = frozenset()

    def __getitem__(self, name: str) -> bool:
        return name in self.granted

    def __contains__(self, name: object) -> bool:
        return name in self.granted

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.granted))

    def __len__(self) -> int:
        return len(self.granted)

    def get(self, name: str) -> bool:
        return name in self.granted

    def to_dict(self) -> dict[str, bool]:
        """Every known capability mapped to a boolean."""
        names = self.known | self.granted
        return {name: name in self.granted for name in sorted(names)}


class PermissionResolver:
    """Immutable lookup built from an AccessConfig."""

    def __init__(self, config: AccessConfig) -> None:
        self._known = config.capabilities
        self._customer = dict(config.customer_grants)
        self._internal = dict(config.internal_grants)

    @property
    def known_capabilities(self) -> frozenset[str]:
        return self._known

    def empty(self) -> CapabilitySet:
        return CapabilitySet(granted=frozenset(), known=self._known)

    def resolve(self, identity: Identity | None) -> CapabilitySet:
        if identity is None:
            return self.empty()

        granted: frozenset[str] | None
        if identity.is_internal:
            granted = self._internal.get(identity.role) if isinstance(identity.role, InternalRole) else None
        elif isinstance(identity.role, CustomerRole) and identity.access_level is not None:
            granted = self._customer.get((identity.access_level, identity.role))
        else:
            granted = None

        if granted is None:
            logger.debug(
                "No capability entry user_type=%s role=%s access_level=%s",
                identity.user_type.value,
                identity.role.value,
                identity.access_level.value if identity.access_level else None,
            )
            return self.empty()

        return CapabilitySet(granted=granted, known=self._known)
