"""Tests for company/site view scope."""

import logging

from portal.access import ViewLevel, ViewState

VIEW_KEY = "portal_view_state"
PASSWORD = "demo123"


def test_company_user_drills_down_and_back(portal, storage):
    portal.login("company.admin@customer.com", PASSWORD)
    scope = portal.scope
    assert scope.is_company_user
    assert scope.is_company_view
    assert not scope.can_edit_in_current_view
    assert not portal.effective_can_edit

    assert scope.drill_down_to_site("SITE-DEL-ENT-002", "Delhi Branch")
    assert scope.is_site_view
    assert not scope.is_company_view
    assert scope.current_site_id == "SITE-DEL-ENT-002"
    assert scope.current_site_name == "Delhi Branch"
    assert portal.effective_can_edit
    assert storage.get(VIEW_KEY) == {
        "viewLevel": "site",
        "selectedSiteId": "SITE-DEL-ENT-002",
        "selectedSiteName": "Delhi Branch",
    }

    assert scope.return_to_company_view()
    assert scope.view_state == ViewState()
    assert scope.current_site_id is None
    assert not portal.effective_can_edit


def test_site_user_cannot_leave_own_site(portal, caplog):
    portal.login("site.admin@customer.com", PASSWORD)
    scope = portal.scope
    with caplog.at_level(logging.WARNING):
        assert not scope.return_to_company_view()
        assert not scope.drill_down_to_site("SITE-DEL-ENT-002", "Delhi Branch")

    assert scope.is_site_view
    assert not scope.is_company_view
    assert scope.current_site_id == "SITE-MUM-ENT-001"
    assert scope.current_site_name == "Mumbai HQ"
    assert scope.can_edit_in_current_view
    assert "only available for company-level users" in caplog.text


def test_internal_user_is_outside_scope(portal):
    portal.login("superadmin@spectra.co", PASSWORD)
    scope = portal.scope
    assert scope.is_internal_user
    assert not scope.is_company_view
    assert not scope.is_site_view
    assert scope.current_site_id is None
    assert not scope.drill_down_to_site("SITE-MUM-ENT-001", "Mumbai HQ")
    assert portal.effective_can_edit


def test_logged_out_scope_has_no_view(portal):
    assert not portal.scope.is_company_view
    assert not portal.scope.is_site_view
    assert not portal.scope.drill_down_to_site("SITE-MUM-ENT-001")


def test_drill_down_requires_site_id(portal):
    portal.login("company.admin@customer.com", PASSWORD)
    assert not portal.scope.drill_down_to_site("")
    assert portal.scope.is_company_view


def test_view_state_survives_reload(make_portal):
    first = make_portal()
    first.login("company.manager@customer.com", PASSWORD, remember=True)
    first.scope.drill_down_to_site("SITE-BLR-ENT-003", "Bangalore Tech Center")

    reloaded = make_portal()
    assert reloaded.session.is_authenticated
    assert reloaded.scope.view_state.view_level is ViewLevel.SITE
    assert reloaded.scope.current_site_id == "SITE-BLR-ENT-003"


def test_view_state_ignored_without_restored_session(make_portal):
    first = make_portal()
    first.login("company.manager@customer.com", PASSWORD)
    first.scope.drill_down_to_site("SITE-BLR-ENT-003", "Bangalore Tech Center")

    reloaded = make_portal()
    assert not reloaded.session.is_authenticated
    assert reloaded.scope.view_state == ViewState()


def test_invalid_stored_view_state_falls_back(make_portal, storage):
    make_portal().login("company.admin@customer.com", PASSWORD, remember=True)
    storage.set(VIEW_KEY, {"viewLevel": "site", "selectedSiteId": None})

    reloaded = make_portal()
    assert reloaded.scope.is_company_view


def test_logout_resets_view(portal, storage):
    portal.login("company.admin@customer.com", PASSWORD)
    portal.scope.drill_down_to_site("SITE-MUM-ENT-001", "Mumbai HQ")
    portal.logout()
    assert portal.scope.view_state == ViewState()
    assert storage.get(VIEW_KEY)["viewLevel"] == "company"
