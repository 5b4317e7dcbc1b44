"""Tests for Identity invariants and its persisted form."""

import pytest

from portal.access import (
    AccessLevel,
    CustomerRole,
    Identity,
    InternalRole,
    InvalidAccessLevelError,
    InvalidRoleError,
    UserType,
)
from portal.access.enums import parse_customer_role, parse_role


def test_internal_identity_rejects_access_level():
    with pytest.raises(InvalidAccessLevelError):
        Identity(
            id="i1",
            username="i1",
            display_name="I1",
            user_type=UserType.INTERNAL,
            role=InternalRole.SUPER_ADMIN,
            access_level=AccessLevel.COMPANY,
        )


def test_customer_identity_rejects_internal_role():
    with pytest.raises(InvalidRoleError):
        Identity(
            id="c1",
            username="c1",
            display_name="C1",
            user_type=UserType.CUSTOMER,
            role=InternalRole.SUPER_ADMIN,
            access_level=AccessLevel.SITE,
        )


def test_customer_identity_requires_access_level():
    with pytest.raises(InvalidAccessLevelError):
        Identity(
            id="c1",
            username="c1",
            display_name="C1",
            user_type=UserType.CUSTOMER,
            role=CustomerRole.USER,
        )


def test_every_credential_identity_survives_serialization(access_config):
    for cred in access_config.credentials:
        assert Identity.from_dict(cred.identity.to_dict()) == cred.identity


def test_to_dict_uses_persisted_field_names(access_config):
    data = access_config.credential_by_id("cust_site_admin").identity.to_dict()
    assert data["userType"] == "customer"
    assert data["accessLevel"] == "site"
    assert data["siteId"] == "SITE-MUM-ENT-001"
    assert data["companyName"] is None


def test_parse_role_accepts_names_and_values():
    assert parse_role(UserType.CUSTOMER, "ADMIN") is CustomerRole.ADMIN
    assert parse_role(UserType.CUSTOMER, "viewer") is CustomerRole.VIEWER
    assert parse_role(UserType.INTERNAL, "SUPPORT_ENGINEER") is InternalRole.SUPPORT_ENGINEER


def test_parse_role_rejects_other_user_types_roles():
    with pytest.raises(InvalidRoleError):
        parse_role(UserType.CUSTOMER, InternalRole.SUPER_ADMIN)
    with pytest.raises(InvalidRoleError):
        parse_role(UserType.INTERNAL, "admin")
    with pytest.raises(InvalidRoleError):
        parse_role(UserType.CUSTOMER, None)


def test_parse_customer_role():
    assert parse_customer_role("MANAGER") is CustomerRole.MANAGER
    assert parse_customer_role(CustomerRole.USER) is CustomerRole.USER
    with pytest.raises(InvalidRoleError):
        parse_customer_role("super_admin")
    with pytest.raises(InvalidRoleError):
        parse_customer_role(InternalRole.SUPPORT_ENGINEER)
