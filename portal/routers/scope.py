from __future__ import annotations

from fastapi import APIRouter, Depends

from portal.access import AccessPortal, Identity
from portal.schemas.access import DrillDownIn, ScopeOut
from portal.security.dependencies import get_current_identity, get_portal

router = APIRouter(prefix="/scope", tags=["scope"])


@router.get("", response_model=ScopeOut)
def get_scope(portal: AccessPortal = Depends(get_portal)) -> ScopeOut:
    return ScopeOut.from_portal(portal)


@router.post("/drill-down", response_model=ScopeOut)
def drill_down(
    body: DrillDownIn,
    portal: AccessPortal = Depends(get_portal),
    _identity: Identity = Depends(get_current_identity),
) -> ScopeOut:
    # Ineligible identities get the unchanged scope back with applied=false.
    applied = portal.scope.drill_down_to_site(body.site_id, body.site_name)
    return ScopeOut.from_portal(portal, applied=applied)


@router.post("/company", response_model=ScopeOut)
def return_to_company(
    portal: AccessPortal = Depends(get_portal),
    _identity: Identity = Depends(get_current_identity),
) -> ScopeOut:
    applied = portal.scope.return_to_company_view()
    return ScopeOut.from_portal(portal, applied=applied)
