"""Tests for the composed AccessPortal: effective identity and action guards."""

import logging

import pytest

from portal.access import AccessLevel, Customer, CustomerRole, Site, UserType
from portal.access.audit import CUSTOMER_VIEW_EXITED

PASSWORD = "demo123"
TECHCORP = Customer(id="COMP_ENT_001", name="TechCorp Solutions Pvt Ltd")
MUMBAI = Site(id="SITE-MUM-ENT-001", name="Mumbai HQ")


@pytest.fixture
def staff(portal):
    portal.login("superadmin@spectra.co", PASSWORD)
    return portal


def test_read_only_holds_across_transitions(staff):
    view = staff.customer_view
    steps = [
        lambda: view.enter_customer_view(TECHCORP, MUMBAI),
        lambda: view.switch_site(None),
        lambda: view.switch_role(CustomerRole.USER),
        lambda: view.switch_site(MUMBAI),
        lambda: view.exit_customer_view(),
    ]
    for step in steps:
        step()
        if view.is_impersonating:
            assert not staff.effective_can_edit
            assert not staff.can_perform("canViewReports")
    assert staff.effective_can_edit


def test_effective_identity_while_impersonating(staff):
    staff.customer_view.enter_customer_view(TECHCORP, MUMBAI, "manager")
    identity = staff.effective_identity

    assert identity.user_type is UserType.CUSTOMER
    assert identity.role is CustomerRole.MANAGER
    assert identity.access_level is AccessLevel.SITE
    assert identity.company_id == "COMP_ENT_001"
    assert staff.effective_site_id == "SITE-MUM-ENT-001"
    assert staff.effective_capabilities["canEditUsers"]
    assert not staff.effective_capabilities["canImpersonateCustomer"]
    assert staff.session.current_user.id == "int_super"


def test_company_level_customer_view_is_not_editable(staff):
    staff.customer_view.enter_customer_view(TECHCORP)
    assert not staff.can_edit_in_current_view
    staff.customer_view.switch_site(MUMBAI)
    assert staff.can_edit_in_current_view
    assert not staff.effective_can_edit


def test_block_action_in_customer_view(staff, caplog):
    staff.customer_view.enter_customer_view(TECHCORP)
    with caplog.at_level(logging.WARNING):
        assert staff.block_action("Edit user")
    assert 'Edit user is disabled in customer view mode. You are viewing as "TechCorp Solutions Pvt Ltd".' in caplog.text


def test_block_action_in_company_view(portal):
    portal.login("company.admin@customer.com", PASSWORD)
    assert portal.blocked_reason("Edit user") == "Edit user is disabled in company view. Select a site to make changes."
    portal.scope.drill_down_to_site(MUMBAI.id, MUMBAI.name)
    assert not portal.block_action("Edit user")


def test_wrap_action(staff):
    calls = []
    wrapped = staff.wrap_action(lambda user_id: calls.append(user_id) or "saved", "Edit user")

    assert wrapped("u1") == "saved"
    staff.customer_view.enter_customer_view(TECHCORP)
    assert wrapped("u2") is None
    assert calls == ["u1"]


def test_disabled_props(staff):
    assert staff.disabled_props("Delete") == {}
    staff.customer_view.enter_customer_view(TECHCORP)
    assert staff.disabled_props("Delete") == {
        "disabled": True,
        "title": "Delete is disabled while viewing as customer",
    }


def test_logged_out_portal_blocks_everything(portal):
    assert not portal.effective_can_edit
    assert portal.block_action()
    assert portal.effective_identity is None
    assert len(portal.effective_capabilities) == 0


def test_logout_exits_customer_view(staff, audit_sink):
    staff.customer_view.enter_customer_view(TECHCORP)
    staff.logout()
    assert not staff.customer_view.is_impersonating
    assert len(audit_sink.of_type(CUSTOMER_VIEW_EXITED)) == 1


def test_identity_change_resets_scope_and_customer_view(portal, audit_sink):
    portal.login("company.admin@customer.com", PASSWORD)
    portal.scope.drill_down_to_site(MUMBAI.id, MUMBAI.name)

    portal.login("company.admin@customer.com", PASSWORD)
    assert portal.scope.is_site_view

    portal.login("company.manager@customer.com", PASSWORD)
    assert portal.scope.is_company_view


def test_losing_impersonation_capability_exits_view(staff, audit_sink):
    staff.customer_view.enter_customer_view(TECHCORP)
    assert staff.update_role("operations_manager")
    assert staff.customer_view.is_impersonating

    assert staff.update_role("deployment_engineer")
    assert not staff.customer_view.is_impersonating
    assert len(audit_sink.of_type(CUSTOMER_VIEW_EXITED)) == 1


def test_update_access_level_resets_scope(portal):
    portal.login("company.admin@customer.com", PASSWORD)
    portal.scope.drill_down_to_site(MUMBAI.id, MUMBAI.name)
    assert portal.update_access_level("site")
    portal.update_access_level("company")
    assert portal.scope.is_company_view


def test_reset_to_maximum_rights_exits_customer_view(staff):
    staff.customer_view.enter_customer_view(TECHCORP)
    assert staff.reset_to_maximum_rights()
    assert not staff.customer_view.is_impersonating
    assert staff.session.current_user.id == "test_max"
