from __future__ import annotations

import logging
from queue import Queue, Full
from threading import Lock
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

# Simple in-memory pub/sub for SSE. Not suitable for multi-process deployments.
# Events are refresh hints only; clients re-fetch the inquiry for its real state.
_subs: dict[str, List[Queue]] = {}
_lock = Lock()


def subscribe(user_id: str) -> Queue:
    q: Queue = Queue(maxsize=100)
    with _lock:
        _subs.setdefault(str(user_id), []).append(q)
    return q


def unsubscribe(user_id: str, q: Queue) -> None:
    with _lock:
        arr = _subs.get(str(user_id))
        if not arr:
            return
        try:
            arr.remove(q)
        except ValueError:
            pass
        if not arr:
            _subs.pop(str(user_id), None)


def publish(user_id: str, event: Dict[str, Any]) -> None:
    # Best-effort, drop if no subscribers
    with _lock:
        arr = list(_subs.get(str(user_id), []))
    for q in arr:
        try:
            q.put_nowait(event)
        except Full:
            logger.debug("Dropping event for slow subscriber of %s", user_id)


def inquiry_event(inquiry) -> dict:
    status = getattr(inquiry.status, "value", inquiry.status)
    return {
        "type": "inquiry",
        "inquiry": {
            "id": inquiry.id,
            "status": status,
            "confidenceScore": inquiry.confidence_score,
            "numberOfMatches": inquiry.number_of_matches,
            "updatedAt": inquiry.updated_at.isoformat() if inquiry.updated_at else None,
        },
    }


def publish_inquiry_update(inquiry) -> None:
    """Tell the inquiry's owner that the row changed."""
    publish(inquiry.user_id, inquiry_event(inquiry))
