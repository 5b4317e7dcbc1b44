from sqlalchemy import select

from portal.access import AccessPortal
from portal.db.kv_store import SqlKeyValueStorage
from portal.db.models import KvEntry


def test_set_get_overwrite_remove(session_factory):
    storage = SqlKeyValueStorage(session_factory)
    assert storage.get("k") is None

    storage.set("k", {"a": 1})
    assert storage.get("k") == {"a": 1}

    storage.set("k", {"a": 2})
    assert storage.get("k") == {"a": 2}

    storage.remove("k")
    assert storage.get("k") is None
    storage.remove("k")


def test_values_are_stored_as_json_text(session_factory):
    storage = SqlKeyValueStorage(session_factory)
    storage.set("portal_view_state", {"viewLevel": "company", "selectedSiteId": None})

    with session_factory() as db:
        entry = db.execute(select(KvEntry).where(KvEntry.key == "portal_view_state")).scalar_one()
        assert entry.value == '{"selectedSiteId":null,"viewLevel":"company"}'
        assert entry.updated_at is not None


def test_corrupt_row_reads_as_absent(session_factory):
    with session_factory() as db:
        db.add(KvEntry(key="portal_auth_state", value="{broken"))
        db.commit()

    assert SqlKeyValueStorage(session_factory).get("portal_auth_state") is None


def test_session_survives_reload_on_sql_storage(session_factory, access_config):
    storage = SqlKeyValueStorage(session_factory)
    first = AccessPortal(storage, access_config)
    first.login("company.admin@customer.com", "demo123", remember=True)
    first.scope.drill_down_to_site("SITE-MUM-ENT-001", "Mumbai HQ")

    reloaded = AccessPortal(SqlKeyValueStorage(session_factory), access_config)
    assert reloaded.session.current_user == first.session.current_user
    assert reloaded.scope.current_site_id == "SITE-MUM-ENT-001"
