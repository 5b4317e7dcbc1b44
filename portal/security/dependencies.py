from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, Response, status

from portal.access import AccessConfig, AccessPortal, Identity
from portal.security.registry import PortalRegistry
from portal.settings import Settings

logger = logging.getLogger(__name__)


def get_settings_from_app(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise RuntimeError("Settings not loaded. Did app startup run?")
    return settings


def get_registry(request: Request) -> PortalRegistry:
    registry = getattr(request.app.state, "portal_registry", None)
    if registry is None:
        raise RuntimeError("Portal registry not initialized. Did app startup run?")
    return registry


def get_access_config(request: Request) -> AccessConfig:
    config = getattr(request.app.state, "access_config", None)
    if config is None:
        raise RuntimeError("Access config not loaded. Did app startup run?")
    return config


def get_portal(
    request: Request,
    response: Response,
    registry: PortalRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings_from_app),
) -> AccessPortal:
    """
    Resolve the caller's AccessPortal from the session cookie.

    A missing cookie, or one naming a session this server never issued,
    starts a fresh session and sets the cookie on the response.
    """

    cookie_name = settings.session_cookie_name
    session_id = request.cookies.get(cookie_name)
    if not registry.is_known(session_id):
        session_id = registry.new_session_id()
        response.set_cookie(cookie_name, session_id, httponly=True, samesite="lax")
    portal = registry.get(session_id)  # type: ignore[arg-type]
    request.state.portal = portal
    return portal


def get_current_identity(portal: AccessPortal = Depends(get_portal)) -> Identity:
    identity = portal.session.current_user
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return identity


def enforce_access(request: Request, portal: AccessPortal = Depends(get_portal)) -> None:
    """
    Global access dependency.

    Reads decorator metadata from the routed endpoint. Endpoints without
    metadata are public at this layer and may still depend on
    ``get_current_identity`` themselves.
    """

    endpoint = request.scope.get("endpoint")
    capabilities = set(getattr(endpoint, "__access_capabilities__", set())) if endpoint else set()
    staff_capabilities = set(getattr(endpoint, "__access_staff_capabilities__", set())) if endpoint else set()
    write_name = getattr(endpoint, "__access_write_action__", None) if endpoint else None

    if not (capabilities or staff_capabilities or write_name):
        return

    if not portal.session.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    if staff_capabilities:
        if not portal.session.is_internal_user:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Internal staff only")
        missing = sorted(c for c in staff_capabilities if not portal.session.has_permission(c))
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing capability: {missing}",
            )

    if write_name:
        reason = portal.blocked_reason(write_name)
        if reason is not None:
            logger.warning("Write blocked path=%s reason=%s", request.url.path, reason)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=reason)

    if capabilities:
        granted = portal.effective_capabilities
        missing = sorted(c for c in capabilities if not granted[c])
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing capability: {missing}",
            )
