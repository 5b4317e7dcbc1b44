"""
Company vs. site view scope for customer identities.

COMPANY-access customers may drill down from the aggregated company view
into a single site and back. SITE-access customers are always in their own
site. Internal identities are outside this concept entirely.

The aggregated company view is read-only: edits must target one site.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Mapping

from .enums import AccessLevel, ViewLevel
from .errors import PreconditionViolation
from .identity import Identity
from .session_store import SessionStore
from .storage import StoragePort

logger = logging.getLogger(__name__)

DEFAULT_VIEW_STORAGE_KEY = "portal_view_state"


@dataclass(frozen=True)
class ViewState:
    view_level: ViewLevel = ViewLevel.COMPANY
    selected_site_id: str | None = None
    selected_site_name: str | None = None

    def __post_init__(self) -> None:
        if self.view_level is ViewLevel.SITE and not self.selected_site_id:
            raise ValueError("site view requires a selected site id")
        if self.view_level is ViewLevel.COMPANY and (self.selected_site_id or self.selected_site_name):
            raise ValueError("company view cannot carry a selected site")

    @classmethod
    def site(cls, site_id: str, site_name: str | None) -> ViewState:
        return cls(ViewLevel.SITE, site_id, site_name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "viewLevel": self.view_level.value,
            "selectedSiteId": self.selected_site_id,
            "selectedSiteName": self.selected_site_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ViewState:
        return cls(
            view_level=ViewLevel(data.get("viewLevel")),
            selected_site_id=data.get("selectedSiteId") or None,
            selected_site_name=data.get("selectedSiteName") or None,
        )


COMPANY_VIEW = ViewState()


class ScopeController:
    def __init__(
        self,
        session: SessionStore,
        storage: StoragePort,
        storage_key: str = DEFAULT_VIEW_STORAGE_KEY,
    ) -> None:
        self._session = session
        self._storage = storage
        self._key = storage_key
        self._state = self._restore()

    # ---- Identity classification --------------------------------------------------

    @property
    def _identity(self) -> Identity | None:
        return self._session.current_user

    @property
    def is_internal_user(self) -> bool:
        return self._session.is_internal_user

    @property
    def is_company_user(self) -> bool:
        identity = self._identity
        return identity is not None and identity.is_customer and identity.access_level is AccessLevel.COMPANY

    @property
    def is_site_user(self) -> bool:
        identity = self._identity
        return identity is not None and identity.is_customer and identity.access_level is AccessLevel.SITE

    # ---- Derived view -------------------------------------------------------------

    @property
    def view_state(self) -> ViewState:
        return self._state

    @property
    def is_company_view(self) -> bool:
        if not self.is_company_user:
            return False
        return self._state.view_level is ViewLevel.COMPANY

    @property
    def is_site_view(self) -> bool:
        if self.is_site_user:
            return True
        if not self.is_company_user:
            return False
        return self._state.view_level is ViewLevel.SITE

    @property
    def current_site_id(self) -> str | None:
        if self.is_site_user:
            return self._identity.site_id  # type: ignore[union-attr]
        if self.is_company_user:
            return self._state.selected_site_id
        return None

    @property
    def current_site_name(self) -> str | None:
        if self.is_site_user:
            return self._identity.site_name  # type: ignore[union-attr]
        if self.is_company_user:
            return self._state.selected_site_name
        return None

    @property
    def can_edit_in_current_view(self) -> bool:
        """Scope-only answer; read-only customer view is layered on top by the caller."""
        return not self.is_company_view

    # ---- Transitions --------------------------------------------------------------

    def drill_down_to_site(self, site_id: str, site_name: str | None = None) -> bool:
        try:
            self._require_company_user("drill down")
            if not site_id:
                raise PreconditionViolation("drill down requires a site id")
        except PreconditionViolation as exc:
            logger.warning("Drill down ignored: %s", exc)
            return False

        self._transition(ViewState.site(site_id, site_name))
        logger.info("Drilled down user_id=%s site_id=%s", self._identity.id, site_id)  # type: ignore[union-attr]
        return True

    def return_to_company_view(self) -> bool:
        try:
            self._require_company_user("return to company view")
        except PreconditionViolation as exc:
            logger.warning("Return to company view ignored: %s", exc)
            return False

        self._transition(COMPANY_VIEW)
        return True

    def reset_view_state(self) -> None:
        """Forced return to the initial company view, used on logout and identity change."""
        self._transition(COMPANY_VIEW)

    # ---- Internals ----------------------------------------------------------------

    def _require_company_user(self, action: str) -> None:
        identity = self._identity
        if identity is None:
            raise PreconditionViolation(f"cannot {action} without an authenticated session")
        if identity.is_internal:
            raise PreconditionViolation(f"cannot {action}: not available for internal users")
        if identity.access_level is not AccessLevel.COMPANY:
            raise PreconditionViolation(f"cannot {action}: only available for company-level users")

    def _transition(self, state: ViewState) -> None:
        self._state = state
        self._storage.set(self._key, state.to_dict())

    def _restore(self) -> ViewState:
        if not self._session.is_authenticated:
            return COMPANY_VIEW

        stored = self._storage.get(self._key)
        if not isinstance(stored, dict):
            return COMPANY_VIEW
        try:
            return ViewState.from_dict(stored)
        except ValueError as exc:
            logger.warning("Failed to restore stored view state: %s", exc)
            return COMPANY_VIEW
