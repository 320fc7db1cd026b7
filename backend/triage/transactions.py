from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import TransitionConflict
from .extensions import db

logger = logging.getLogger(__name__)


@contextmanager
def atomic(session: Session | None = None) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing.

    Unique-constraint violations mean another actor got there first and are
    reported as ``TransitionConflict``; every other error is re-raised after
    the rollback.
    """
    session = session or db.session
    try:
        yield session
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.info("Rolled back on constraint violation: %s", e.orig)
        raise TransitionConflict("Conflicting update from another session; reload and retry") from e
    except Exception:
        session.rollback()
        raise
