from __future__ import annotations

from fastapi import APIRouter, Depends

from portal.access import AccessPortal
from portal.schemas.access import CapabilitiesOut
from portal.security.dependencies import get_portal

router = APIRouter(tags=["capabilities"])


@router.get("/capabilities", response_model=CapabilitiesOut)
def capabilities(portal: AccessPortal = Depends(get_portal)) -> CapabilitiesOut:
    return CapabilitiesOut.from_portal(portal)
