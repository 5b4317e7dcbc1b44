"""
Access-scope and customer-view control layer.

This package has no dependency on the web or database packages. Build an
AccessPortal per browser session with a StoragePort and a loaded
AccessConfig.
"""

from .audit import AuditEvent, LoggingAuditSink, RecordingAuditSink
from .config import AccessConfig, load_access_config
from .control import AccessPortal
from .enums import AccessLevel, CustomerRole, InternalRole, UserType, ViewLevel
from .errors import (
    AccessConfigError,
    AccessError,
    InvalidAccessLevelError,
    InvalidCredentials,
    InvalidRoleError,
    MissingCustomer,
    PreconditionViolation,
)
from .identity import Identity
from .impersonation import Customer, ImpersonationController, Site
from .permissions import CapabilitySet, PermissionResolver
from .scope import ScopeController, ViewState
from .session_store import LoginResult, SessionStore
from .storage import InMemoryStorage, NamespacedStorage, StoragePort

__all__ = [
    "AccessConfig",
    "AccessConfigError",
    "AccessError",
    "AccessLevel",
    "AccessPortal",
    "AuditEvent",
    "CapabilitySet",
    "Customer",
    "CustomerRole",
    "Identity",
    "ImpersonationController",
    "InMemoryStorage",
    "InternalRole",
    "InvalidAccessLevelError",
    "InvalidCredentials",
    "InvalidRoleError",
    "LoggingAuditSink",
    "LoginResult",
    "MissingCustomer",
    "NamespacedStorage",
    "PermissionResolver",
    "PreconditionViolation",
    "RecordingAuditSink",
    "ScopeController",
    "SessionStore",
    "Site",
    "StoragePort",
    "UserType",
    "ViewLevel",
    "ViewState",
    "load_access_config",
]
