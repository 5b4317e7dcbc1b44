"""
Access configuration loader.

The YAML file holds everything the access layer treats as static data:

    access:
      capabilities: [canEditUsers, canViewReports, ...]
      profiles:
        customer_site_user:
          permissions: [canViewReports, ...]
        customer_site_manager:
          extends: customer_site_user
          permissions: [canEditUsers, ...]
      customer_roles:
        site:
          user: customer_site_user
      internal_roles:
        super_admin: internal_super_admin
      credentials:
        internal: [...]
        customer: [...]
      maximum_rights: {...}
      role_labels: {admin: Site Admin, ...}
      catalog:
        customers: [...]
        sites: {enterprise: [...]}

Profiles may extend one another; inheritance is resolved once at load time
and cycles are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, Field, ValidationError
import yaml

from .enums import AccessLevel, CustomerRole, InternalRole, UserType
from .errors import AccessConfigError
from .identity import Identity

logger = logging.getLogger(__name__)


class ProfileModel(BaseModel):
    extends: str | None = None
    permissions: list[str] = Field(default_factory=list)


class CredentialModel(BaseModel):
    id: str
    label: str | None = None
    username: str
    password: str
    role: str
    display_name: str
    access_level: str | None = None
    company_id: str | None = None
    company_name: str | None = None
    site_id: str | None = None
    site_name: str | None = None


class CredentialTableModel(BaseModel):
    internal: list[CredentialModel] = Field(default_factory=list)
    customer: list[CredentialModel] = Field(default_factory=list)


class CustomerModel(BaseModel):
    id: str
    name: str
    segment: str
    industry: str | None = None
    contact_email: str | None = None


class SiteModel(BaseModel):
    site_id: str
    site_name: str
    city: str | None = None
    status: str = "active"


class CatalogModel(BaseModel):
    customers: list[CustomerModel] = Field(default_factory=list)
    sites: dict[str, list[SiteModel]] = Field(default_factory=dict)


class AccessConfigModel(BaseModel):
    capabilities: list[str] = Field(default_factory=list)
    profiles: dict[str, ProfileModel] = Field(default_factory=dict)
    customer_roles: dict[str, dict[str, str]] = Field(default_factory=dict)
    internal_roles: dict[str, str] = Field(default_factory=dict)
    credentials: CredentialTableModel = Field(default_factory=CredentialTableModel)
    maximum_rights: CredentialModel | None = None
    role_labels: dict[str, str] = Field(default_factory=dict)
    catalog: CatalogModel = Field(default_factory=CatalogModel)


@dataclass(frozen=True)
class Credential:
    """One row of the fixed credential table."""

    id: str
    label: str
    username: str
    password: str
    identity: Identity


@dataclass(frozen=True)
class AccessConfig:
    """Fully-resolved access configuration."""

    capabilities: frozenset[str]
    customer_grants: Mapping[tuple[AccessLevel, CustomerRole], frozenset[str]]
    internal_grants: Mapping[InternalRole, frozenset[str]]
    credentials: tuple[Credential, ...]
    maximum_rights: Identity | None
    role_labels: Mapping[CustomerRole, str]
    catalog: CatalogModel

    def find_credential(self, username: str, password: str) -> Credential | None:
        for cred in self.credentials:
            if cred.username == username and cred.password == password:
                return cred
        return None

    def credential_by_id(self, credential_id: str) -> Credential | None:
        for cred in self.credentials:
            if cred.id == credential_id:
                return cred
        return None

    def role_label(self, role: CustomerRole) -> str:
        return self.role_labels.get(role, role.name)


def _resolve_profiles(model: AccessConfigModel) -> dict[str, frozenset[str]]:
    """Flatten profile inheritance. Detects unknown parents and cycles."""

    known = set(model.capabilities)
    for name, profile in model.profiles.items():
        if profile.extends is not None and profile.extends not in model.profiles:
            raise AccessConfigError(f"profile {name!r} extends unknown profile {profile.extends!r}")
        unknown = set(profile.permissions) - known
        if unknown:
            raise AccessConfigError(f"profile {name!r} references unknown capabilities: {sorted(unknown)}")

    effective: dict[str, frozenset[str]] = {}
    visiting: set[str] = set()

    def dfs(name: str) -> frozenset[str]:
        if name in effective:
            return effective[name]
        if name in visiting:
            raise AccessConfigError(f"cycle detected in profile inheritance at {name!r}")
        visiting.add(name)
        profile = model.profiles[name]
        perms = set(profile.permissions)
        if profile.extends:
            perms.update(dfs(profile.extends))
        result = frozenset(perms)
        effective[name] = result
        visiting.remove(name)
        return result

    for name in model.profiles:
        dfs(name)
    return effective


def _profile(profiles: Mapping[str, frozenset[str]], name: str, where: str) -> frozenset[str]:
    try:
        return profiles[name]
    except KeyError:
        raise AccessConfigError(f"{where} references unknown profile {name!r}") from None


def _build_identity(cred: CredentialModel, user_type: UserType) -> Identity:
    try:
        if user_type is UserType.INTERNAL:
            return Identity(
                id=cred.id,
                username=cred.username,
                display_name=cred.display_name,
                user_type=user_type,
                role=InternalRole(cred.role),
            )
        if cred.access_level is None:
            raise AccessConfigError(f"customer credential {cred.id!r} requires access_level")
        return Identity(
            id=cred.id,
            username=cred.username,
            display_name=cred.display_name,
            user_type=user_type,
            role=CustomerRole(cred.role),
            access_level=AccessLevel(cred.access_level),
            company_id=cred.company_id or None,
            company_name=cred.company_name or None,
            site_id=cred.site_id or None,
            site_name=cred.site_name or None,
        )
    except ValueError as exc:
        if isinstance(exc, AccessConfigError):
            raise
        raise AccessConfigError(f"credential {cred.id!r}: {exc}") from exc


def build_access_config(model: AccessConfigModel) -> AccessConfig:
    profiles = _resolve_profiles(model)

    customer_grants: dict[tuple[AccessLevel, CustomerRole], frozenset[str]] = {}
    for level_raw, roles in model.customer_roles.items():
        try:
            level = AccessLevel(level_raw)
        except ValueError:
            raise AccessConfigError(f"customer_roles has unknown access level {level_raw!r}") from None
        for role_raw, profile_name in roles.items():
            try:
                role = CustomerRole(role_raw)
            except ValueError:
                raise AccessConfigError(f"customer_roles.{level_raw} has unknown role {role_raw!r}") from None
            customer_grants[(level, role)] = _profile(profiles, profile_name, f"customer_roles.{level_raw}.{role_raw}")

    internal_grants: dict[InternalRole, frozenset[str]] = {}
    for role_raw, profile_name in model.internal_roles.items():
        try:
            role = InternalRole(role_raw)
        except ValueError:
            raise AccessConfigError(f"internal_roles has unknown role {role_raw!r}") from None
        internal_grants[role] = _profile(profiles, profile_name, f"internal_roles.{role_raw}")

    credentials: list[Credential] = []
    seen_ids: set[str] = set()
    for user_type, rows in (
        (UserType.INTERNAL, model.credentials.internal),
        (UserType.CUSTOMER, model.credentials.customer),
    ):
        for row in rows:
            if row.id in seen_ids:
                raise AccessConfigError(f"duplicate credential id {row.id!r}")
            seen_ids.add(row.id)
            credentials.append(
                Credential(
                    id=row.id,
                    label=row.label or row.display_name,
                    username=row.username,
                    password=row.password,
                    identity=_build_identity(row, user_type),
                )
            )

    maximum_rights = None
    if model.maximum_rights is not None:
        maximum_rights = _build_identity(model.maximum_rights, UserType.CUSTOMER)

    role_labels: dict[CustomerRole, str] = {}
    for role_raw, label in model.role_labels.items():
        try:
            role_labels[CustomerRole(role_raw)] = label
        except ValueError:
            raise AccessConfigError(f"role_labels has unknown role {role_raw!r}") from None

    return AccessConfig(
        capabilities=frozenset(model.capabilities),
        customer_grants=customer_grants,
        internal_grants=internal_grants,
        credentials=tuple(credentials),
        maximum_rights=maximum_rights,
        role_labels=role_labels,
        catalog=model.catalog,
    )


def load_access_config(path: Path) -> AccessConfig:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "access" not in raw:
        raise AccessConfigError(f"Missing top-level 'access' key in config: {path}")

    try:
        model = AccessConfigModel.model_validate(raw["access"])
    except ValidationError as exc:
        raise AccessConfigError(f"Invalid access config {path}: {exc}") from exc

    config = build_access_config(model)
    logger.debug(
        "Loaded access config path=%s credentials=%d capabilities=%d",
        path,
        len(config.credentials),
        len(config.capabilities),
    )
    return config
