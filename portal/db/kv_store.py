"""SQLAlchemy-backed implementation of the access layer's StoragePort."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete
from sqlalchemy.orm import Session, sessionmaker

from portal.access.storage import decode, encode
from portal.db.models import KvEntry

logger = logging.getLogger(__name__)


class SqlKeyValueStorage:
    """
    Durable key-value storage on the ``kv_entries`` table.

    Every ``set``/``remove`` commits before returning, so a reload right
    after a transition reads exactly what the transition wrote.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Any | None:
        with self._session_factory() as db:
            entry = db.get(KvEntry, key)
            raw = entry.value if entry is not None else None
        return decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        encoded = encode(value)
        with self._session_factory() as db:
            entry = db.get(KvEntry, key)
            if entry is None:
                db.add(KvEntry(key=key, value=encoded))
            else:
                entry.value = encoded
            db.commit()
        logger.debug("Stored key=%s", key)

    def remove(self, key: str) -> None:
        with self._session_factory() as db:
            db.execute(delete(KvEntry).where(KvEntry.key == key))
            db.commit()
