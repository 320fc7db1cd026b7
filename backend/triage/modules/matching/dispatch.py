"""Hand a matching run off without waiting for it.

``MATCHING_DISPATCH=celery`` (default) enqueues the Celery job;
``inline`` runs it in-process, for development without a broker. Either
way the caller gets a bool and never an exception: submission must not
fail because matching could not start.
"""

from __future__ import annotations

import logging

from flask import current_app
from kombu.exceptions import OperationalError
from sqlalchemy.exc import SQLAlchemyError

from ...errors import TriageError

logger = logging.getLogger(__name__)


def dispatch_matching(inquiry_id: int) -> bool:
    mode = (current_app.config.get("MATCHING_DISPATCH") or "celery").lower()
    if mode == "inline":
        return run_inline(inquiry_id)
    try:
        from ...tasks.jobs.matching import run_matching
        run_matching.delay(inquiry_id)
    except (OperationalError, OSError):
        logger.exception("Could not enqueue matching for inquiry %s", inquiry_id)
        return False
    logger.info("Enqueued matching for inquiry %s", inquiry_id)
    return True


def run_inline(inquiry_id: int) -> bool:
    from ...services import matching_service

    try:
        result = matching_service().run(inquiry_id)
    except (TriageError, SQLAlchemyError):
        logger.exception("Inline matching for inquiry %s failed", inquiry_id)
        return False
    logger.info("Inline matching for inquiry %s found %d candidate(s)", inquiry_id, result.match_count)
    return True
