"""Unit tests for the in-process update bus behind the SSE stream."""

from datetime import datetime, timezone
from types import SimpleNamespace

from triage.models import InquiryStatus
from triage.modules.notifications.bus import publish, publish_inquiry_update, subscribe, unsubscribe


def test_events_reach_only_the_owner():
    mine = subscribe("owner-1")
    theirs = subscribe("owner-2")
    try:
        inquiry = SimpleNamespace(
            id=5, user_id="owner-1", status=InquiryStatus.MATCHED, confidence_score=85.0,
            number_of_matches=1, updated_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )
        publish_inquiry_update(inquiry)
        evt = mine.get_nowait()
        assert evt["inquiry"]["id"] == 5
        assert evt["inquiry"]["status"] == "matched"
        assert theirs.empty()
    finally:
        unsubscribe("owner-1", mine)
        unsubscribe("owner-2", theirs)


def test_full_queue_drops_instead_of_blocking():
    q = subscribe("busy")
    try:
        for n in range(150):
            publish("busy", {"n": n})
        assert q.qsize() == 100
    finally:
        unsubscribe("busy", q)


def test_publish_without_subscribers_is_noop():
    publish("nobody", {"type": "inquiry"})
    unsubscribe("nobody", subscribe("nobody"))
