"""
Customer view ("view as customer") for internal staff.

Two states: idle (no session) and impersonating (a session with a
customer). The session is held in memory only; a reload must never resume
impersonation silently.

While impersonating, the application is read-only regardless of the acting
identity's own capabilities. Every transition into or out of impersonation,
and every site switch, is audited after the state change is committed.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Callable, Mapping

from .audit import (
    COMPANY_LEVEL,
    CUSTOMER_VIEW_ENTERED,
    CUSTOMER_VIEW_EXITED,
    CUSTOMER_VIEW_SITE_SWITCHED,
    AuditEvent,
    AuditSink,
    emit,
)
from .enums import AccessLevel, CustomerRole, parse_customer_role
from .errors import InvalidRoleError, MissingCustomer, PreconditionViolation
from .session_store import SessionStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

IMPERSONATE_CAPABILITY = "canImpersonateCustomer"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    segment: str | None = None
    industry: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Customer:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            segment=data.get("segment"),
            industry=data.get("industry"),
        )


@dataclass(frozen=True)
class Site:
    id: str
    name: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Site:
        # Catalog rows use siteId/siteName; API payloads use id/name.
        site_id = data.get("siteId", data.get("site_id", data.get("id")))
        site_name = data.get("siteName", data.get("site_name", data.get("name")))
        if not site_id:
            raise ValueError("site requires an id")
        return cls(id=str(site_id), name=str(site_name or site_id))


@dataclass(frozen=True)
class ImpersonationSession:
    customer: Customer
    site: Site | None
    role: CustomerRole
    started_at: datetime
    actor_id: str | None = None

    @property
    def access_level(self) -> AccessLevel:
        return AccessLevel.COMPANY if self.site is None else AccessLevel.SITE


def _coerce_customer(customer: Customer | Mapping[str, Any] | None) -> Customer:
    if customer is None:
        raise MissingCustomer("customer is required to enter customer view")
    if isinstance(customer, Customer):
        return customer
    try:
        return Customer.from_mapping(customer)
    except (KeyError, TypeError) as exc:
        raise MissingCustomer(f"customer is missing required fields: {exc}") from exc


def _coerce_site(site: Site | Mapping[str, Any] | None) -> Site | None:
    if site is None or isinstance(site, Site):
        return site
    return Site.from_mapping(site)


class ImpersonationController:
    def __init__(
        self,
        session: SessionStore,
        audit_sink: AuditSink | None = None,
        clock: Clock = utc_now,
        role_labels: Mapping[CustomerRole, str] | None = None,
    ) -> None:
        self._session = session
        self._audit = audit_sink
        self._clock = clock
        self._role_labels = dict(role_labels or {})
        self._active: ImpersonationSession | None = None

    # ---- State --------------------------------------------------------------------

    @property
    def active_session(self) -> ImpersonationSession | None:
        return self._active

    @property
    def is_impersonating(self) -> bool:
        return self._active is not None

    @property
    def is_read_only_mode(self) -> bool:
        return self._active is not None

    @property
    def impersonated_customer(self) -> Customer | None:
        return self._active.customer if self._active else None

    @property
    def impersonated_site(self) -> Site | None:
        return self._active.site if self._active else None

    @property
    def impersonated_role(self) -> CustomerRole | None:
        return self._active.role if self._active else None

    @property
    def impersonated_access_level(self) -> AccessLevel | None:
        return self._active.access_level if self._active else None

    @property
    def start_time(self) -> datetime | None:
        return self._active.started_at if self._active else None

    @property
    def impersonation_duration(self) -> int:
        """Whole minutes since the session started; 0 when idle."""
        if self._active is None:
            return 0
        return max(0, self._elapsed_ms(self._active) // 60000)

    @property
    def impersonation_display_string(self) -> str:
        if self._active is None:
            return ""
        site_name = self._active.site.name if self._active.site else "Company Level"
        return f"{self._active.customer.name} > {site_name} ({self.role_label(self._active.role)})"

    def role_label(self, role: CustomerRole) -> str:
        return self._role_labels.get(role, role.name)

    # ---- Transitions --------------------------------------------------------------

    def enter_customer_view(
        self,
        customer: Customer | Mapping[str, Any] | None,
        site: Site | Mapping[str, Any] | None = None,
        role: CustomerRole | str | None = None,
    ) -> bool:
        try:
            target = _coerce_customer(customer)
        except MissingCustomer as exc:
            logger.error("Enter customer view ignored: %s", exc)
            return False

        try:
            actor_id = self._require_eligible_actor()
            target_site = _coerce_site(site)
            target_role = parse_customer_role(role) if role is not None else CustomerRole.ADMIN
        except PreconditionViolation as exc:
            logger.warning("Enter customer view ignored: %s", exc)
            return False
        except (InvalidRoleError, ValueError) as exc:
            logger.error("Enter customer view ignored: %s", exc)
            return False

        if self._active is not None:
            # Re-entering replaces the current session; close it out first.
            self.exit_customer_view()

        self._active = ImpersonationSession(
            customer=target,
            site=target_site,
            role=target_role,
            started_at=self._clock(),
            actor_id=actor_id,
        )
        logger.info(
            "Customer view entered actor_id=%s customer_id=%s site_id=%s role=%s",
            actor_id,
            target.id,
            target_site.id if target_site else COMPANY_LEVEL,
            target_role.value,
        )
        self._emit(
            CUSTOMER_VIEW_ENTERED,
            self._active,
            self._active.started_at,
            customerName=target.name,
            siteId=target_site.id if target_site else COMPANY_LEVEL,
            role=target_role.name,
        )
        return True

    def switch_site(self, site: Site | Mapping[str, Any] | None) -> bool:
        try:
            active = self._require_active("switch site")
            target_site = _coerce_site(site)
        except PreconditionViolation as exc:
            logger.warning("Switch site ignored: %s", exc)
            return False
        except ValueError as exc:
            logger.error("Switch site ignored: %s", exc)
            return False

        self._active = replace(active, site=target_site)
        self._emit(
            CUSTOMER_VIEW_SITE_SWITCHED,
            self._active,
            self._clock(),
            newSiteId=target_site.id if target_site else COMPANY_LEVEL,
        )
        return True

    def switch_role(self, role: CustomerRole | str) -> bool:
        """Change the impersonated role. Not audited."""
        try:
            active = self._require_active("switch role")
            target_role = parse_customer_role(role)
        except PreconditionViolation as exc:
            logger.warning("Switch role ignored: %s", exc)
            return False
        except InvalidRoleError as exc:
            logger.error("Switch role ignored: %s", exc)
            return False

        self._active = replace(active, role=target_role)
        return True

    def exit_customer_view(self) -> bool:
        active = self._active
        if active is None:
            return False

        now = self._clock()
        self._active = None
        duration_ms = max(0, _ms_between(active.started_at, now))
        logger.info("Customer view exited customer_id=%s duration_ms=%d", active.customer.id, duration_ms)
        self._emit(
            CUSTOMER_VIEW_EXITED,
            active,
            now,
            customerName=active.customer.name,
            durationMs=duration_ms,
            duration=f"{duration_ms}ms",
        )
        return True

    # ---- Internals ----------------------------------------------------------------

    def _require_eligible_actor(self) -> str:
        identity = self._session.current_user
        if identity is None:
            raise PreconditionViolation("customer view requires an authenticated session")
        if not identity.is_internal:
            raise PreconditionViolation("customer view is only available to internal staff")
        if not self._session.has_permission(IMPERSONATE_CAPABILITY):
            raise PreconditionViolation(f"role {identity.role.value!r} cannot view as customer")
        return identity.id

    def _require_active(self, action: str) -> ImpersonationSession:
        if self._active is None:
            raise PreconditionViolation(f"cannot {action} when not impersonating")
        return self._active

    def _elapsed_ms(self, active: ImpersonationSession) -> int:
        return _ms_between(active.started_at, self._clock())

    def _emit(self, event_type: str, active: ImpersonationSession, at: datetime, **fields: Any) -> None:
        event = AuditEvent(
            event_type=event_type,
            customer_id=active.customer.id,
            timestamp=at.isoformat(),
            fields={"actorId": active.actor_id, **fields},
        )
        emit(self._audit, event)


def _ms_between(start: datetime, end: datetime) -> int:
    return (end - start) // timedelta(milliseconds=1)
