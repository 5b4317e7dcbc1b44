"""
Per-session composition of the access controllers.

One AccessPortal corresponds to one browser session. It owns the
SessionStore and layers scope and customer view on top of it, producing
the effective identity, capabilities and write permission every page
consults.

Write permission composes as:

    effective_can_edit = authenticated
                         AND can_edit_in_current_view
                         AND NOT is_read_only_mode

Customer view forces read-only for internal staff who would otherwise pass
every capability check, so action guards consult ``effective_can_edit``
directly and not only the capability set.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

from .audit import AuditSink
from .config import AccessConfig
from .enums import AccessLevel, CustomerRole, InternalRole, UserType
from .identity import Identity
from .impersonation import Clock, ImpersonationController, utc_now
from .permissions import CapabilitySet, PermissionResolver
from .scope import DEFAULT_VIEW_STORAGE_KEY, ScopeController
from .session_store import DEFAULT_AUTH_STORAGE_KEY, LoginResult, SessionStore
from .storage import StoragePort

logger = logging.getLogger(__name__)

R = TypeVar("R")


class AccessPortal:
    def __init__(
        self,
        storage: StoragePort,
        config: AccessConfig,
        audit_sink: AuditSink | None = None,
        clock: Clock = utc_now,
        resolver: PermissionResolver | None = None,
        auth_storage_key: str = DEFAULT_AUTH_STORAGE_KEY,
        view_storage_key: str = DEFAULT_VIEW_STORAGE_KEY,
    ) -> None:
        self.config = config
        self.resolver = resolver or PermissionResolver(config)
        # Session first: scope and customer view read the current identity.
        self.session = SessionStore(storage, config, self.resolver, auth_storage_key)
        self.scope = ScopeController(self.session, storage, view_storage_key)
        self.customer_view = ImpersonationController(self.session, audit_sink, clock, config.role_labels)

    # ---- Session lifecycle --------------------------------------------------------

    def login(self, login_id: str, secret: str, remember: bool = False) -> LoginResult:
        previous = self.session.current_user
        result = self.session.login(login_id, secret, remember)
        if result.success:
            self._after_login(previous, result.identity)
        return result

    def login_with_demo_credential(self, credential_id: str) -> LoginResult:
        previous = self.session.current_user
        result = self.session.login_with_demo_credential(credential_id)
        if result.success:
            self._after_login(previous, result.identity)
        return result

    def logout(self) -> None:
        self.customer_view.exit_customer_view()
        self.session.logout()
        self.scope.reset_view_state()

    def update_role(self, new_role: CustomerRole | InternalRole | str) -> bool:
        ok = self.session.update_role(new_role)
        if ok and not self.session.has_permission("canImpersonateCustomer"):
            self.customer_view.exit_customer_view()
        return ok

    def update_access_level(self, new_level: AccessLevel | str) -> bool:
        ok = self.session.update_access_level(new_level)
        if ok:
            self.scope.reset_view_state()
        return ok

    def reset_to_maximum_rights(self) -> bool:
        previous = self.session.current_user
        ok = self.session.reset_to_maximum_rights()
        if ok:
            self._after_login(previous, self.session.current_user)
        return ok

    def _after_login(self, previous: Identity | None, current: Identity | None) -> None:
        if previous is not None and current is not None and previous.id == current.id:
            return
        self.customer_view.exit_customer_view()
        self.scope.reset_view_state()

    # ---- Effective view -----------------------------------------------------------

    @property
    def is_read_only_mode(self) -> bool:
        return self.customer_view.is_read_only_mode

    @property
    def effective_identity(self) -> Identity | None:
        """The identity pages render for: the impersonated customer while in customer view."""
        active = self.customer_view.active_session
        if active is None:
            return self.session.current_user
        return Identity(
            id=f"customer-view:{active.customer.id}",
            username="",
            display_name=active.customer.name,
            user_type=UserType.CUSTOMER,
            role=active.role,
            access_level=active.access_level,
            company_id=active.customer.id,
            company_name=active.customer.name,
            site_id=active.site.id if active.site else None,
            site_name=active.site.name if active.site else None,
        )

    @property
    def effective_capabilities(self) -> CapabilitySet:
        return self.resolver.resolve(self.effective_identity)

    @property
    def effective_site_id(self) -> str | None:
        if self.customer_view.is_impersonating:
            site = self.customer_view.impersonated_site
            return site.id if site else None
        return self.scope.current_site_id

    @property
    def can_edit_in_current_view(self) -> bool:
        if self.customer_view.is_impersonating:
            return self.customer_view.impersonated_access_level is not AccessLevel.COMPANY
        return self.scope.can_edit_in_current_view

    @property
    def effective_can_edit(self) -> bool:
        return self.session.is_authenticated and self.can_edit_in_current_view and not self.is_read_only_mode

    def can_perform(self, capability: str) -> bool:
        """Capability check for write actions; always False while read-only."""
        return self.effective_can_edit and self.effective_capabilities[capability]

    # ---- Action guards ------------------------------------------------------------

    def blocked_reason(self, action_name: str = "This action") -> str | None:
        if not self.session.is_authenticated:
            return f"{action_name} requires an authenticated session."
        if self.is_read_only_mode:
            customer = self.customer_view.impersonated_customer
            name = customer.name if customer else "Unknown"
            return f'{action_name} is disabled in customer view mode. You are viewing as "{name}".'
        if not self.can_edit_in_current_view:
            return f"{action_name} is disabled in company view. Select a site to make changes."
        return None

    def block_action(self, action_name: str = "This action") -> bool:
        """Return True (and log why) when the action must not run."""
        reason = self.blocked_reason(action_name)
        if reason is None:
            return False
        logger.warning(reason)
        return True

    def wrap_action(self, handler: Callable[..., R], action_name: str = "This action") -> Callable[..., R | None]:
        @functools.wraps(handler)
        def wrapper(*args: Any, **kwargs: Any) -> R | None:
            if self.block_action(action_name):
                return None
            return handler(*args, **kwargs)

        return wrapper

    def disabled_props(self, action_name: str = "This action") -> dict[str, Any]:
        if self.effective_can_edit:
            return {}
        if self.is_read_only_mode:
            title = f"{action_name} is disabled while viewing as customer"
        else:
            title = self.blocked_reason(action_name) or ""
        return {"disabled": True, "title": title}
