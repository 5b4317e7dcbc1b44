from __future__ import annotations

from collections import OrderedDict
import logging
import re
import secrets
import threading

from portal.access import AccessConfig, AccessPortal, NamespacedStorage, StoragePort
from portal.access.audit import AuditSink
from portal.access.impersonation import Clock, utc_now

logger = logging.getLogger(__name__)

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]{16,64}$")

DEFAULT_MAX_PORTALS = 1024


class PortalRegistry:
    """
    One AccessPortal per browser session.

    Portals share the durable storage backend but each one sees only its own
    namespaced keys. At most ``max_portals`` are kept in memory: anonymous
    portals are evicted first, then the least recently used one. The next
    request for an evicted session id rebuilds its portal from storage, so a
    session that was not remembered is lost, as on a restart. Customer view
    always starts idle on a rebuild, so eviction exits it (and audits the
    exit) first.
    """

    def __init__(
        self,
        storage: StoragePort,
        config: AccessConfig,
        audit_sink: AuditSink | None = None,
        clock: Clock = utc_now,
        auth_storage_key: str = "portal_auth_state",
        view_storage_key: str = "portal_view_state",
        max_portals: int = DEFAULT_MAX_PORTALS,
    ) -> None:
        if max_portals < 1:
            raise ValueError("max_portals must be at least 1")
        self._storage = storage
        self._config = config
        self._audit_sink = audit_sink
        self._clock = clock
        self._auth_key = auth_storage_key
        self._view_key = view_storage_key
        self._max_portals = max_portals
        self._portals: OrderedDict[str, AccessPortal] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def new_session_id() -> str:
        return secrets.token_urlsafe(24)

    @staticmethod
    def is_valid_session_id(session_id: str | None) -> bool:
        return bool(session_id) and bool(_SESSION_ID_RE.match(session_id or ""))

    def is_known(self, session_id: str | None) -> bool:
        """
        True for ids this server issued: cached in memory, or owning a
        persisted session. Client-chosen ids are never adopted.
        """
        if not self.is_valid_session_id(session_id):
            return False
        with self._lock:
            if session_id in self._portals:
                return True
        return NamespacedStorage(self._storage, session_id).get(self._auth_key) is not None  # type: ignore[arg-type]

    def get(self, session_id: str) -> AccessPortal:
        if not self.is_valid_session_id(session_id):
            raise ValueError("invalid session id")
        with self._lock:
            portal = self._portals.get(session_id)
            if portal is not None:
                self._portals.move_to_end(session_id)
                return portal

            portal = AccessPortal(
                NamespacedStorage(self._storage, session_id),
                self._config,
                audit_sink=self._audit_sink,
                clock=self._clock,
                auth_storage_key=self._auth_key,
                view_storage_key=self._view_key,
            )
            self._portals[session_id] = portal
            logger.debug("Created portal for session (authenticated=%s)", portal.session.is_authenticated)

            while len(self._portals) > self._max_portals:
                self._evict_one(keep=session_id)
            return portal

    def _evict_one(self, keep: str) -> None:
        # Anonymous portals go first; they hold nothing worth rebuilding.
        candidates = [sid for sid in self._portals if sid != keep]
        victim = next(
            (sid for sid in candidates if not self._portals[sid].session.is_authenticated),
            candidates[0],
        )
        evicted = self._portals.pop(victim)
        evicted.customer_view.exit_customer_view()
        logger.debug("Evicted portal (authenticated=%s)", evicted.session.is_authenticated)

    def __len__(self) -> int:
        return len(self._portals)
