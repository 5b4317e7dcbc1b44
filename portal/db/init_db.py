from __future__ import annotations

from sqlalchemy import Engine

from portal.db import models as _models  # noqa: F401  (register tables)
from portal.db.base import Base


def init_db(engine: Engine) -> None:
    """Create the key-value table if it does not exist yet."""

    Base.metadata.create_all(bind=engine)
