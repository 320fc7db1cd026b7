import logging

from triage.errors import NotFound
from triage.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="triage.run_matching")
def run_matching(inquiry_id: int) -> dict:
    # Local import: the service layer needs the Flask app, which the task base provides
    from triage.services import matching_service

    try:
        return matching_service().run(inquiry_id).to_dict()
    except NotFound:
        logger.warning("Matching job for unknown inquiry %s", inquiry_id)
        return {"matchCount": 0, "matches": []}
