"""Tests for the storage port implementations."""

from portal.access import InMemoryStorage, NamespacedStorage


def test_in_memory_storage_encodes_json():
    storage = InMemoryStorage()
    storage.set("k", {"viewLevel": "site", "selectedSiteId": "s1"})
    assert storage.raw("k") == '{"selectedSiteId":"s1","viewLevel":"site"}'
    assert storage.get("k") == {"viewLevel": "site", "selectedSiteId": "s1"}


def test_remove_missing_key_is_noop():
    storage = InMemoryStorage()
    storage.remove("absent")
    assert storage.get("absent") is None


def test_corrupt_value_reads_as_absent(caplog):
    storage = InMemoryStorage()
    storage.put_raw("k", "{not json")
    assert storage.get("k") is None
    assert "Failed to parse stored value" in caplog.text


def test_namespaces_are_isolated():
    backend = InMemoryStorage()
    a = NamespacedStorage(backend, "session-a")
    b = NamespacedStorage(backend, "session-b")
    a.set("portal_auth_state", {"isAuthenticated": True})
    assert b.get("portal_auth_state") is None
    assert backend.keys() == ["session-a:portal_auth_state"]
    a.remove("portal_auth_state")
    assert backend.keys() == []
