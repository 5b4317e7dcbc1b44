from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from portal.access import AccessPortal, Identity
from portal.schemas.access import AccessLevelIn, IdentityOut, LoginIn, RoleIn, SessionOut, SessionUpdateOut
from portal.security.dependencies import get_current_identity, get_portal

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=SessionOut)
def login(body: LoginIn, portal: AccessPortal = Depends(get_portal)) -> SessionOut:
    result = portal.login(body.login_id, body.secret, body.remember)
    if not result.success:
        # Same answer for unknown user and wrong secret.
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return SessionOut.from_portal(portal)


@router.post("/demo-login/{credential_id}", response_model=SessionOut)
def demo_login(credential_id: str, portal: AccessPortal = Depends(get_portal)) -> SessionOut:
    result = portal.login_with_demo_credential(credential_id)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return SessionOut.from_portal(portal)


@router.post("/logout", response_model=SessionOut)
def logout(portal: AccessPortal = Depends(get_portal)) -> SessionOut:
    portal.logout()
    return SessionOut.from_portal(portal)


@router.get("/me", response_model=IdentityOut)
def me(identity: Identity = Depends(get_current_identity)) -> IdentityOut:
    return IdentityOut.from_identity(identity)


@router.put("/role", response_model=SessionUpdateOut)
def update_role(
    body: RoleIn,
    portal: AccessPortal = Depends(get_portal),
    _identity: Identity = Depends(get_current_identity),
) -> SessionUpdateOut:
    applied = portal.update_role(body.role)
    return SessionUpdateOut(applied=applied, session=SessionOut.from_portal(portal))


@router.put("/access-level", response_model=SessionUpdateOut)
def update_access_level(
    body: AccessLevelIn,
    portal: AccessPortal = Depends(get_portal),
    _identity: Identity = Depends(get_current_identity),
) -> SessionUpdateOut:
    applied = portal.update_access_level(body.access_level)
    return SessionUpdateOut(applied=applied, session=SessionOut.from_portal(portal))


@router.post("/maximum-rights", response_model=SessionUpdateOut)
def maximum_rights(
    portal: AccessPortal = Depends(get_portal),
    _identity: Identity = Depends(get_current_identity),
) -> SessionUpdateOut:
    applied = portal.reset_to_maximum_rights()
    return SessionUpdateOut(applied=applied, session=SessionOut.from_portal(portal))
