from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level for the ``portal`` logger tree.

    Uvicorn installs the handlers; ``portal.audit`` inherits this level so
    customer-view audit lines appear at INFO and above.
    Set ``PORTAL_LOG_LEVEL=DEBUG`` (or INFO/WARNING/ERROR) to control verbosity.
    """

    normalized = level.upper()
    logging.getLogger("portal").setLevel(normalized)
    logging.getLogger("portal").propagate = True
