from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from portal.access import AccessConfig, AccessPortal
from portal.access.catalog import find_customer, list_customers, sites_for_segment
from portal.access.impersonation import Site
from portal.schemas.access import (
    AuditEventOut,
    CustomerOut,
    CustomerViewOut,
    EnterCustomerViewIn,
    RoleIn,
    SiteOut,
    SwitchSiteIn,
)
from portal.security.decorators import require_staff_capability
from portal.security.dependencies import get_access_config, get_portal

router = APIRouter(prefix="/customer-view", tags=["customer_view"])


def _find_site(config: AccessConfig, segment: str | None, site_id: str | None) -> Site | None:
    if site_id is None:
        return None
    for site in sites_for_segment(config, segment or ""):
        if site.id == site_id:
            return site
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")


@router.get("", response_model=CustomerViewOut)
def get_customer_view(portal: AccessPortal = Depends(get_portal)) -> CustomerViewOut:
    return CustomerViewOut.from_portal(portal)


@router.post("", response_model=CustomerViewOut)
@require_staff_capability("canImpersonateCustomer")
def enter_customer_view(
    body: EnterCustomerViewIn,
    portal: AccessPortal = Depends(get_portal),
    config: AccessConfig = Depends(get_access_config),
) -> CustomerViewOut:
    customer = find_customer(config, body.customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    site = _find_site(config, customer.segment, body.site_id)
    applied = portal.customer_view.enter_customer_view(customer, site, body.role)
    return CustomerViewOut.from_portal(portal, applied=applied)


@router.put("/site", response_model=CustomerViewOut)
def switch_site(
    body: SwitchSiteIn,
    portal: AccessPortal = Depends(get_portal),
    config: AccessConfig = Depends(get_access_config),
) -> CustomerViewOut:
    customer = portal.customer_view.impersonated_customer
    site = _find_site(config, customer.segment if customer else None, body.site_id) if customer else None
    applied = portal.customer_view.switch_site(site)
    return CustomerViewOut.from_portal(portal, applied=applied)


@router.put("/role", response_model=CustomerViewOut)
def switch_role(body: RoleIn, portal: AccessPortal = Depends(get_portal)) -> CustomerViewOut:
    applied = portal.customer_view.switch_role(body.role)
    return CustomerViewOut.from_portal(portal, applied=applied)


@router.delete("", response_model=CustomerViewOut)
def exit_customer_view(portal: AccessPortal = Depends(get_portal)) -> CustomerViewOut:
    applied = portal.customer_view.exit_customer_view()
    return CustomerViewOut.from_portal(portal, applied=applied)


@router.get("/customers", response_model=list[CustomerOut])
@require_staff_capability("canViewAllCustomers")
def customers(config: AccessConfig = Depends(get_access_config)) -> list[CustomerOut]:
    return [CustomerOut.from_customer(c) for c in list_customers(config)]


@router.get("/customers/{customer_id}/sites", response_model=list[SiteOut])
@require_staff_capability("canViewAllCustomers")
def customer_sites(customer_id: str, config: AccessConfig = Depends(get_access_config)) -> list[SiteOut]:
    customer = find_customer(config, customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return [SiteOut.from_site(s) for s in sites_for_segment(config, customer.segment or "")]


@router.get("/audit", response_model=list[AuditEventOut])
@require_staff_capability("canViewAuditLogs")
def audit_events(request: Request) -> list[AuditEventOut]:
    recorder = request.app.state.audit_recorder
    return [AuditEventOut.from_event(e) for e in reversed(recorder.events)]
