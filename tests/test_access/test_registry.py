import pytest

from portal.access import Customer, InMemoryStorage
from portal.access.audit import CUSTOMER_VIEW_EXITED
from portal.security.registry import PortalRegistry

PASSWORD = "demo123"


@pytest.fixture
def registry(access_config, audit_sink, clock):
    return PortalRegistry(InMemoryStorage(), access_config, audit_sink=audit_sink, clock=clock)


def test_same_session_id_returns_same_portal(registry):
    sid = registry.new_session_id()
    assert registry.get(sid) is registry.get(sid)
    assert len(registry) == 1


def test_sessions_are_isolated(registry):
    a = registry.get(registry.new_session_id())
    b = registry.get(registry.new_session_id())
    a.login("support@spectra.co", PASSWORD, remember=True)
    assert a.session.is_authenticated
    assert not b.session.is_authenticated


def test_invalid_session_id_rejected(registry):
    assert not registry.is_valid_session_id(None)
    assert not registry.is_valid_session_id("short")
    assert not registry.is_valid_session_id("x" * 20 + "/../")
    with pytest.raises(ValueError):
        registry.get("bad id")


def test_only_issued_session_ids_are_known(registry):
    assert not registry.is_known(None)
    assert not registry.is_known("a" * 32)

    sid = registry.new_session_id()
    assert not registry.is_known(sid)
    registry.get(sid)
    assert registry.is_known(sid)


def test_cache_is_bounded(access_config):
    registry = PortalRegistry(InMemoryStorage(), access_config, max_portals=3)
    for _ in range(10):
        registry.get(registry.new_session_id())
    assert len(registry) == 3


def test_max_portals_must_be_positive(access_config):
    with pytest.raises(ValueError):
        PortalRegistry(InMemoryStorage(), access_config, max_portals=0)


def test_anonymous_portals_are_evicted_first(access_config):
    registry = PortalRegistry(InMemoryStorage(), access_config, max_portals=2)
    staff_id = registry.new_session_id()
    staff = registry.get(staff_id)
    staff.login("support@spectra.co", PASSWORD)

    for _ in range(5):
        fresh_id = registry.new_session_id()
        assert registry.get(fresh_id) is registry.get(fresh_id)

    assert len(registry) == 2
    assert registry.get(staff_id) is staff


def test_evicted_session_rebuilds_from_storage(access_config, audit_sink, clock):
    registry = PortalRegistry(InMemoryStorage(), access_config, audit_sink=audit_sink, clock=clock, max_portals=1)
    sid = registry.new_session_id()
    portal = registry.get(sid)
    portal.login("support@spectra.co", PASSWORD, remember=True)
    portal.customer_view.enter_customer_view(Customer(id="COMP_ENT_001", name="TechCorp Solutions Pvt Ltd"))

    registry.get(registry.new_session_id())

    assert not portal.customer_view.is_impersonating
    assert len(audit_sink.of_type(CUSTOMER_VIEW_EXITED)) == 1
    assert registry.is_known(sid)

    rebuilt = registry.get(sid)
    assert rebuilt is not portal
    assert rebuilt.session.current_user.id == "int_support"
    assert not rebuilt.customer_view.is_impersonating
