"""
Idempotent schema bootstrap for the roster tables
"""

import logging
from sqlalchemy.engine import Engine

from roastcall.database.base import metadata
from roastcall.modules.groups.models import groups  # noqa: F401  (registers table)
from roastcall.modules.members.models import members  # noqa: F401  (registers table)

logger = logging.getLogger(__name__)


def ensure_schema(engine: Engine) -> None:
    """Create the groups and members tables if they are missing. Safe to call before every read."""
    metadata.create_all(engine, checkfirst=True)
    logger.debug("Roster schema verified")
