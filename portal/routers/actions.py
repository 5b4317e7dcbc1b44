from __future__ import annotations

from fastapi import APIRouter, Depends

from portal.access import AccessPortal
from portal.schemas.access import ActionOut
from portal.security.decorators import require_capability, write_action
from portal.security.dependencies import get_portal

router = APIRouter(prefix="/actions", tags=["actions"])


def _performed(portal: AccessPortal, action: str, target_id: str) -> ActionOut:
    identity = portal.effective_identity
    return ActionOut(
        action=action,
        target_id=target_id,
        site_id=portal.effective_site_id,
        performed_by=identity.id if identity else "",
    )


@router.post("/users/{user_id}/edit", response_model=ActionOut)
@require_capability("canEditUsers")
@write_action("Edit user")
def edit_user(user_id: str, portal: AccessPortal = Depends(get_portal)) -> ActionOut:
    return _performed(portal, "edit_user", user_id)


@router.post("/devices/{device_id}/manage", response_model=ActionOut)
@require_capability("canManageDevices")
@write_action("Manage device")
def manage_device(device_id: str, portal: AccessPortal = Depends(get_portal)) -> ActionOut:
    return _performed(portal, "manage_device", device_id)


@router.get("/reports/{report_id}", response_model=ActionOut)
@require_capability("canViewReports")
def view_report(report_id: str, portal: AccessPortal = Depends(get_portal)) -> ActionOut:
    # Reads stay available in customer view and company view.
    return _performed(portal, "view_report", report_id)
