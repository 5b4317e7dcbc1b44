from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from portal.access import AccessPortal, Identity
from portal.access.audit import AuditEvent
from portal.access.impersonation import Customer, Site


class IdentityOut(BaseModel):
    id: str
    username: str
    display_name: str
    user_type: str
    role: str
    access_level: str | None
    company_id: str | None
    company_name: str | None
    site_id: str | None
    site_name: str | None

    @classmethod
    def from_identity(cls, identity: Identity) -> IdentityOut:
        return cls(
            id=identity.id,
            username=identity.username,
            display_name=identity.display_name,
            user_type=identity.user_type.value,
            role=identity.role.value,
            access_level=identity.access_level.value if identity.access_level else None,
            company_id=identity.company_id,
            company_name=identity.company_name,
            site_id=identity.site_id,
            site_name=identity.site_name,
        )


class SessionOut(BaseModel):
    is_authenticated: bool
    current_user: IdentityOut | None
    remember: bool

    @classmethod
    def from_portal(cls, portal: AccessPortal) -> SessionOut:
        user = portal.session.current_user
        return cls(
            is_authenticated=user is not None,
            current_user=IdentityOut.from_identity(user) if user else None,
            remember=portal.session.remember,
        )


class LoginIn(BaseModel):
    login_id: str
    secret: str
    remember: bool = False


class RoleIn(BaseModel):
    role: str


class AccessLevelIn(BaseModel):
    access_level: str


class SessionUpdateOut(BaseModel):
    applied: bool
    session: SessionOut


class DrillDownIn(BaseModel):
    site_id: str = Field(min_length=1)
    site_name: str | None = None


class ScopeOut(BaseModel):
    applied: bool = True
    view_level: str
    selected_site_id: str | None
    selected_site_name: str | None
    is_company_view: bool
    is_site_view: bool
    current_site_id: str | None
    current_site_name: str | None
    can_edit_in_current_view: bool

    @classmethod
    def from_portal(cls, portal: AccessPortal, applied: bool = True) -> ScopeOut:
        scope = portal.scope
        state = scope.view_state
        return cls(
            applied=applied,
            view_level=state.view_level.value,
            selected_site_id=state.selected_site_id,
            selected_site_name=state.selected_site_name,
            is_company_view=scope.is_company_view,
            is_site_view=scope.is_site_view,
            current_site_id=scope.current_site_id,
            current_site_name=scope.current_site_name,
            can_edit_in_current_view=scope.can_edit_in_current_view,
        )


class CustomerOut(BaseModel):
    id: str
    name: str
    segment: str | None
    industry: str | None

    @classmethod
    def from_customer(cls, customer: Customer) -> CustomerOut:
        return cls(id=customer.id, name=customer.name, segment=customer.segment, industry=customer.industry)


class SiteOut(BaseModel):
    id: str
    name: str

    @classmethod
    def from_site(cls, site: Site) -> SiteOut:
        return cls(id=site.id, name=site.name)


class EnterCustomerViewIn(BaseModel):
    customer_id: str
    site_id: str | None = None
    role: str | None = None


class SwitchSiteIn(BaseModel):
    site_id: str | None = None


class CustomerViewOut(BaseModel):
    applied: bool = True
    is_impersonating: bool
    is_read_only_mode: bool
    customer: CustomerOut | None
    site: SiteOut | None
    role: str | None
    access_level: str | None
    start_time: str | None
    duration_minutes: int
    display: str

    @classmethod
    def from_portal(cls, portal: AccessPortal, applied: bool = True) -> CustomerViewOut:
        view = portal.customer_view
        customer = view.impersonated_customer
        site = view.impersonated_site
        role = view.impersonated_role
        level = view.impersonated_access_level
        started = view.start_time
        return cls(
            applied=applied,
            is_impersonating=view.is_impersonating,
            is_read_only_mode=view.is_read_only_mode,
            customer=CustomerOut.from_customer(customer) if customer else None,
            site=SiteOut.from_site(site) if site else None,
            role=role.value if role else None,
            access_level=level.value if level else None,
            start_time=started.isoformat() if started else None,
            duration_minutes=view.impersonation_duration,
            display=view.impersonation_display_string,
        )


class CapabilitiesOut(BaseModel):
    effective_identity: IdentityOut | None
    capabilities: dict[str, bool]
    can_edit_in_current_view: bool
    is_read_only_mode: bool
    effective_can_edit: bool

    @classmethod
    def from_portal(cls, portal: AccessPortal) -> CapabilitiesOut:
        identity = portal.effective_identity
        return cls(
            effective_identity=IdentityOut.from_identity(identity) if identity else None,
            capabilities=portal.effective_capabilities.to_dict(),
            can_edit_in_current_view=portal.can_edit_in_current_view,
            is_read_only_mode=portal.is_read_only_mode,
            effective_can_edit=portal.effective_can_edit,
        )


class AuditEventOut(BaseModel):
    event_type: str
    customer_id: str
    timestamp: str
    fields: dict[str, Any]

    @classmethod
    def from_event(cls, event: AuditEvent) -> AuditEventOut:
        return cls(
            event_type=event.event_type,
            customer_id=event.customer_id,
            timestamp=event.timestamp,
            fields=dict(event.fields),
        )


class ActionOut(BaseModel):
    action: str
    target_id: str
    site_id: str | None
    performed_by: str
