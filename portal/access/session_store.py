"""
Session store: the single source of truth for who is logged in.

Persisted layout (JSON, under the auth storage key):

    {"isAuthenticated": true, "currentUser": {...Identity.to_dict()...}}

The snapshot is written on every successful mutation when the user chose
"remember" at login; otherwise any previously persisted snapshot is removed
so a reload can never resurrect a stale session.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from .config import AccessConfig, Credential
from .enums import AccessLevel, CustomerRole, InternalRole, parse_access_level, parse_role
from .errors import InvalidAccessLevelError, InvalidCredentials, InvalidRoleError, PreconditionViolation
from .identity import Identity
from .permissions import CapabilitySet, PermissionResolver
from .storage import StoragePort

logger = logging.getLogger(__name__)

DEFAULT_AUTH_STORAGE_KEY = "portal_auth_state"


@dataclass(frozen=True)
class LoginResult:
    identity: Identity | None = None
    error: InvalidCredentials | None = None

    @property
    def success(self) -> bool:
        return self.identity is not None


class SessionStore:
    def __init__(
        self,
        storage: StoragePort,
        config: AccessConfig,
        resolver: PermissionResolver | None = None,
        storage_key: str = DEFAULT_AUTH_STORAGE_KEY,
    ) -> None:
        self._storage = storage
        self._config = config
        self._resolver = resolver or PermissionResolver(config)
        self._key = storage_key

        self._identity: Identity | None = None
        self._remember = False
        self._permissions = self._resolver.empty()
        self._restore()

    # ---- State --------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def current_user(self) -> Identity | None:
        return self._identity

    @property
    def remember(self) -> bool:
        return self._remember

    @property
    def user_permissions(self) -> CapabilitySet:
        return self._permissions

    @property
    def resolver(self) -> PermissionResolver:
        return self._resolver

    @property
    def is_internal_user(self) -> bool:
        return self._identity is not None and self._identity.is_internal

    @property
    def is_customer_user(self) -> bool:
        return self._identity is not None and self._identity.is_customer

    def has_permission(self, name: str) -> bool:
        return self._permissions[name]

    def snapshot(self) -> dict[str, Any]:
        return {
            "isAuthenticated": self._identity is not None,
            "currentUser": self._identity.to_dict() if self._identity else None,
        }

    # ---- Authentication -----------------------------------------------------------

    def login(self, login_id: str, secret: str, remember: bool = False) -> LoginResult:
        cred = self._config.find_credential(login_id, secret)
        if cred is None:
            logger.info("Login rejected")
            return LoginResult(error=InvalidCredentials())
        return self._start(cred, remember)

    def login_with_demo_credential(self, credential_id: str) -> LoginResult:
        """Quick login by credential id. Always persisted."""
        cred = self._config.credential_by_id(credential_id)
        if cred is None:
            logger.info("Demo login rejected credential_id=%s", credential_id)
            return LoginResult(error=InvalidCredentials())
        return self._start(cred, remember=True)

    def logout(self) -> None:
        if self._identity is not None:
            logger.info("Logout user_id=%s", self._identity.id)
        self._identity = None
        self._remember = False
        self._permissions = self._resolver.empty()
        self._storage.remove(self._key)

    # ---- Test / demo tooling ------------------------------------------------------

    def update_role(self, new_role: CustomerRole | InternalRole | str) -> bool:
        """Change the current identity's role. Illegal values are logged and ignored."""
        try:
            identity = self._require_identity("update role")
            role = parse_role(identity.user_type, new_role)
        except (PreconditionViolation, InvalidRoleError) as exc:
            logger.error("Role update ignored: %s", exc)
            return False

        self._commit(identity.with_role(role))
        logger.info("Role updated user_id=%s role=%s", identity.id, role.value)
        return True

    def update_access_level(self, new_level: AccessLevel | str) -> bool:
        """Change a customer identity's access level. Illegal values are logged and ignored."""
        try:
            identity = self._require_identity("update access level")
            if not identity.is_customer:
                raise InvalidAccessLevelError("access level does not apply to internal identities")
            level = parse_access_level(new_level)
        except (PreconditionViolation, InvalidAccessLevelError) as exc:
            logger.error("Access level update ignored: %s", exc)
            return False

        self._commit(identity.with_access_level(level))
        logger.info("Access level updated user_id=%s access_level=%s", identity.id, level.value)
        return True

    def reset_to_maximum_rights(self) -> bool:
        identity = self._config.maximum_rights
        if identity is None:
            logger.warning("No maximum-rights identity configured")
            return False
        if self._identity is None:
            self._remember = True
        self._commit(identity)
        return True

    def set_current_user(self, identity: Identity) -> None:
        """Replace the identity wholesale."""
        self._commit(identity)

    # ---- Internals ----------------------------------------------------------------

    def _require_identity(self, action: str) -> Identity:
        if self._identity is None:
            raise PreconditionViolation(f"cannot {action} without an authenticated session")
        return self._identity

    def _start(self, cred: Credential, remember: bool) -> LoginResult:
        self._remember = remember
        self._commit(cred.identity)
        logger.info("Login user_id=%s user_type=%s remember=%s", cred.identity.id, cred.identity.user_type.value, remember)
        return LoginResult(identity=cred.identity)

    def _commit(self, identity: Identity) -> None:
        self._identity = identity
        self._permissions = self._resolver.resolve(identity)
        if self._remember:
            self._storage.set(self._key, self.snapshot())
        else:
            self._storage.remove(self._key)

    def _restore(self) -> None:
        stored = self._storage.get(self._key)
        if not isinstance(stored, dict):
            return
        if not stored.get("isAuthenticated") or not stored.get("currentUser"):
            return
        current = stored["currentUser"]
        if not isinstance(current, dict):
            logger.warning("Failed to restore stored session: currentUser is not an object")
            return
        try:
            identity = Identity.from_dict(current)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Failed to restore stored session: %s", exc)
            return

        self._identity = identity
        self._remember = True
        self._permissions = self._resolver.resolve(identity)
        logger.debug("Restored session user_id=%s", identity.id)
